import os


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ['true', 'on', '1']


class Config:
    # Maximum nesting depth accepted by the parser and the differentiator
    MAX_DEPTH = int(os.environ.get('DERIVATOR_MAX_DEPTH', 100))

    DEFAULT_VARIABLE = os.environ.get('DERIVATOR_DEFAULT_VARIABLE', 'x')

    # Cross-check every derivative with SymPy before answering
    VERIFY_WITH_SYMPY = _env_flag('DERIVATOR_VERIFY', 'true')

    # Degraded mode: remote differentiation service behind /proxy
    REMOTE_URL = os.environ.get('DERIVATOR_REMOTE_URL', 'https://eval.mathdf.com/smart')
    REMOTE_TIMEOUT = float(os.environ.get('DERIVATOR_REMOTE_TIMEOUT', 15))

    # Comma-separated list, '*' allows every origin
    _cors_origins_str = os.environ.get('DERIVATOR_CORS_ORIGINS', '*')
    CORS_ORIGINS = [origin.strip() for origin in _cors_origins_str.split(',') if origin.strip()]

    # Address used when the app is started with `python main.py`
    HOST = os.environ.get('DERIVATOR_HOST', '127.0.0.1')
    PORT = int(os.environ.get('DERIVATOR_PORT', 8000))

    LOG_LEVEL = os.environ.get('DERIVATOR_LOG_LEVEL', 'INFO').upper()


config = Config()
