"""
Hostname to tenant resolution.

Examples (root domain whatthepack.today):
    localhost                                  -> None
    whatthepack.today                          -> None (marketing)
    dev.whatthepack.today                      -> None (environment, not a tenant)
    bunga-mawar.dev.whatthepack.today          -> "bunga-mawar"
    bunga-mawar.whatthepack.today              -> "bunga-mawar"
    bunga-mawar.localhost                      -> "bunga-mawar"
"""

from django.conf import settings

from apps.tenancy.slugs import is_reserved_slug

DEFAULT_ROOT_DOMAIN = "whatthepack.today"
_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1"})


def _root_domain(root_domain: str | None) -> str:
    return (root_domain or getattr(settings, "PLATFORM_ROOT_DOMAIN", "") or DEFAULT_ROOT_DOMAIN).lower()


def _strip_port(hostname: str) -> str:
    return hostname.strip().lower().split(":", 1)[0]


def resolve_tenant(hostname: str, root_domain: str | None = None) -> str | None:
    """Return the tenant slug for ``hostname``, or None for platform hosts."""
    host = _strip_port(hostname)
    root = _root_domain(root_domain)

    if not host or host in _LOCAL_HOSTS:
        return None

    if host.endswith(".localhost"):
        label = host.split(".")[0]
        return None if not label or is_reserved_slug(label) else label

    if host in (root, f"dev.{root}"):
        return None

    parts = host.split(".")
    if len(parts) >= 3:
        label = parts[0]
        if not label or is_reserved_slug(label):
            return None
        return label

    return None


def is_tenant_hostname(hostname: str, root_domain: str | None = None) -> bool:
    return resolve_tenant(hostname, root_domain) is not None


def is_development_hostname(hostname: str, root_domain: str | None = None) -> bool:
    """Localhost, ``*.localhost`` and anything under ``dev.<root>`` count as development."""
    host = _strip_port(hostname)
    root = _root_domain(root_domain)
    if host in _LOCAL_HOSTS or host.endswith(".localhost"):
        return True
    return host == f"dev.{root}" or host.endswith(f".dev.{root}")


def build_org_url(
    slug: str,
    path: str = "/",
    *,
    development: bool = False,
    scheme: str = "https",
    root_domain: str | None = None,
) -> str:
    """Absolute URL of ``path`` on the tenant's subdomain."""
    root = _root_domain(root_domain)
    clean_path = path if path.startswith("/") else f"/{path}"
    domain = f"dev.{root}" if development else root
    return f"{scheme}://{slug}.{domain}{clean_path}"


def org_hostname(slug: str, *, development: bool = False, root_domain: str | None = None) -> str:
    root = _root_domain(root_domain)
    return f"{slug}.dev.{root}" if development else f"{slug}.{root}"
