VERSION = (1, 0, 0)
__version__ = ".".join(map(str, VERSION))


def get_zset_client(alias="default"):
    """Helper used for obtaining a configured sorted set client."""
    from django_zset.connections import clients

    return clients[alias]
