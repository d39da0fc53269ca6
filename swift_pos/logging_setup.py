# ==============================================================================
# LOGGING
# ==============================================================================
# Cada módulo usa logging.getLogger(__name__). Este módulo solo configura
# el handler raíz del paquete una vez (consola, formato legible).
# ==============================================================================

import logging

LOG_FORMAT = '%(asctime)s %(levelname)-7s %(name)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_configured = False


def configure_logging(level: str = 'INFO') -> logging.Logger:
    """
    Configura el logger del paquete swift_pos.

    Llamadas repetidas solo actualizan el nivel.

    Args:
        level: Nombre del nivel (DEBUG, INFO, WARNING...)

    Returns:
        Logger raíz del paquete
    """
    global _configured
    logger = logging.getLogger('swift_pos')
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(handler)
        _configured = True

    return logger
