"""Tenant-scoped lookups used by every repository."""

from protean.exceptions import ObjectNotFoundError

from stockkeeping.errors import NotFound


def get_owned(repo, identifier, tenant_id, entity: str, include_deleted: bool = False):
    """Load an aggregate by id, treating other tenants' rows as absent."""
    try:
        obj = repo.get(identifier)
    except ObjectNotFoundError as exc:
        raise NotFound(entity, identifier) from exc

    if str(obj.tenant_id) != str(tenant_id):
        raise NotFound(entity, identifier)
    if getattr(obj, "is_deleted", False) and not include_deleted:
        raise NotFound(entity, identifier)
    return obj
