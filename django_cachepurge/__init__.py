VERSION = (1, 0, 0)
__version__ = ".".join(map(str, VERSION))


def get_purge_service():
    """Helper used for obtaining a cache purge service built from settings."""
    from django_cachepurge.service import CachePurgeService

    return CachePurgeService.from_settings()
