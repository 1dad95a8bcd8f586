"""
Compose generation — compile a ResolvedConfig into docker-compose.yml.

``compile_topology`` is pure: same config in, same descriptor out.
Credentials are never embedded; every secret is a ``${KEY}``
placeholder that docker compose fills in from the injection channel
env file at invocation time.

Named volumes carry an explicit ``name:`` so docker compose uses them
verbatim instead of prefixing the project name a second time.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from wpenv.core.config.loader import CONFIG_FILE_NAME, require_valid
from wpenv.core.models.project import ResolvedConfig
from wpenv.core.models.topology import (
    NetworkSpec,
    ServiceSpec,
    TopologyDescriptor,
    VolumeSpec,
)
from wpenv.core.persistence.state_file import write_text_atomic

logger = logging.getLogger(__name__)

# ── Fixed service parameters ────────────────────────────────────

NETWORK_NAME = "wp-network"

DB_SERVICE = "db"
APP_SERVICE = "wordpress"
CACHE_SERVICE = "redis"
PROXY_SERVICE = "s3proxy"
AUTH_SERVICE = "shibboleth"

DB_IMAGE = "mariadb:latest"
CACHE_IMAGE = "redis:alpine"
PROXY_IMAGE = "public.ecr.aws/bostonuniversity-nonprod/aws-sigv4-proxy"
AUTH_IMAGE = "ghcr.io/bu-ist/bu-shibboleth-sp:latest"

DB_NAME = "wordpress"
DB_USER = "wordpress"
APP_TIMEZONE = "America/New_York"

DB_DATA_DIR = "/var/lib/mysql"
APP_ROOT = "/var/www/html"

# Required by code bundled in the image, emitted unconditionally
INCLUDES_DIRECTIVE = "define( 'BU_INCLUDES_PATH', '/var/www/html/bu-includes' );"

BANNER = (
    "# Generated by wpenv\n"
    "# Do not edit this file directly - it will be overwritten\n"
    f"# Edit {CONFIG_FILE_NAME} instead\n"
)


# ── Helpers ─────────────────────────────────────────────────────


def placeholder(key: str, default: str | None = None) -> str:
    """Compose variable reference for a credential key."""
    if default is None:
        return "${" + key + "}"
    return "${" + key + ":-" + default + "}"


def volume_names(identity: str) -> tuple[str, str]:
    """Return (database volume, build volume) for a project identity."""
    return f"{identity}_db_data", f"{identity}_build"


def _env_str(value: object) -> str:
    """Literal environment value; `$` is doubled so compose keeps it as-is."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).replace("$", "$$")


# ── Service builders ────────────────────────────────────────────


def _db_service(config: ResolvedConfig, db_volume: str) -> ServiceSpec:
    return ServiceSpec(
        image=DB_IMAGE,
        volumes=[f"{db_volume}:{DB_DATA_DIR}"],
        environment={
            "MYSQL_DATABASE": DB_NAME,
            "MYSQL_USER": DB_USER,
            "MYSQL_PASSWORD": placeholder("WORDPRESS_DB_PASSWORD"),
            "MYSQL_ROOT_PASSWORD": placeholder("DB_ROOT_PASSWORD"),
        },
        ports=[f"{config.ports['db']}:3306"],
        networks=[NETWORK_NAME],
    )


def _config_extra(config: ResolvedConfig) -> str:
    """Assemble the WORDPRESS_CONFIG_EXTRA block."""
    lines: list[str] = []

    if config.multisite:
        lines.append("define('MULTISITE', true);")
        lines.append("define('SUBDOMAIN_INSTALL', false);")

    if config.services.proxy:
        lines.extend([
            f"define('S3_UPLOADS_BUCKET', '{placeholder('S3_UPLOADS_BUCKET')}');",
            f"define('S3_UPLOADS_REGION', '{placeholder('S3_UPLOADS_REGION', 'us-east-1')}');",
            f"define('S3_UPLOADS_KEY', '{placeholder('S3_UPLOADS_ACCESS_KEY_ID')}');",
            f"define('S3_UPLOADS_SECRET', '{placeholder('S3_UPLOADS_SECRET_ACCESS_KEY')}');",
            f"define('ACCESS_RULES_TABLE', '{placeholder('S3_ACCESS_RULES_TABLE', '')}');",
            "define('S3_UPLOADS_OBJECT_ACL', null);",
            "define('S3_UPLOADS_AUTOENABLE', true);",
            "define('S3_UPLOADS_DISABLE_REPLACE_UPLOAD_URL', true);",
        ])

    lines.append(INCLUDES_DIRECTIVE)
    return "\n".join(lines) + "\n"


def _app_environment(config: ResolvedConfig) -> dict[str, str]:
    env = {
        "WORDPRESS_DB_HOST": f"{DB_SERVICE}:3306",
        "WORDPRESS_DB_USER": DB_USER,
        "WORDPRESS_DB_PASSWORD": placeholder("WORDPRESS_DB_PASSWORD"),
        "WORDPRESS_DB_NAME": DB_NAME,
        "WORDPRESS_DEBUG": _env_str(config.env.get("WP_DEBUG", "0")),
        "SERVER_NAME": _env_str(config.hostname or ""),
        "HTTP_HOST": _env_str(config.hostname or ""),
        "MULTISITE": _env_str(config.multisite),
        "XDEBUG": _env_str(config.env.get("XDEBUG", False)),
        "WP_CLI_ALLOW_ROOT": "true",
        "TZ": APP_TIMEZONE,
    }

    if config.services.cache:
        env["REDIS_HOST"] = CACHE_SERVICE
        env["REDIS_PORT"] = "6379"

    if config.services.proxy:
        env["S3PROXY_HOST"] = f"http://{PROXY_SERVICE}:8080"

    if config.services.federated_auth:
        env.update({
            "SP_ENTITY_ID": placeholder("SP_ENTITY_ID"),
            "IDP_ENTITY_ID": placeholder("IDP_ENTITY_ID"),
            "SHIB_IDP_LOGOUT": placeholder("SHIB_IDP_LOGOUT", ""),
            "SHIB_SP_KEY": placeholder("SHIB_SP_KEY", ""),
            "SHIB_SP_CERT": placeholder("SHIB_SP_CERT", ""),
        })

    # Custom variables never replace a key set above
    for key, value in config.env.items():
        if key not in env:
            env[key] = _env_str(value)

    env["WORDPRESS_CONFIG_EXTRA"] = _config_extra(config)
    return env


def _app_service(config: ResolvedConfig, build_volume: str) -> ServiceSpec:
    depends_on = [DB_SERVICE]
    if config.services.cache:
        depends_on.append(CACHE_SERVICE)
    if config.services.proxy:
        depends_on.append(PROXY_SERVICE)
    if config.services.federated_auth:
        depends_on.append(AUTH_SERVICE)

    volumes = [f"{build_volume}:{APP_ROOT}"]
    for mapping in config.mappings:
        local = config.resolve_local(mapping.local or ".")
        volumes.append(f"{local}:{mapping.container}")

    return ServiceSpec(
        image=config.image or "",
        depends_on=depends_on,
        ports=[f"{config.ports['http']}:80", f"{config.ports['https']}:443"],
        hostname=config.hostname,
        environment=_app_environment(config),
        volumes=volumes,
        networks=[NETWORK_NAME],
    )


def _cache_service(config: ResolvedConfig) -> ServiceSpec:
    return ServiceSpec(
        image=CACHE_IMAGE,
        ports=[f"{config.ports.get('cache', 6379)}:6379"],
        networks=[NETWORK_NAME],
    )


def _proxy_service() -> ServiceSpec:
    region = placeholder("OLAP_REGION", "us-east-1")
    host = (
        f"{placeholder('OLAP')}-{placeholder('OLAP_ACCT_NBR')}"
        f".s3-object-lambda.{region}.amazonaws.com"
    )
    return ServiceSpec(
        image=PROXY_IMAGE,
        command=[
            "-v",
            "--name", "s3-object-lambda",
            "--region", region,
            "--no-verify-ssl",
            "--host", host,
        ],
        environment={
            "healthcheck_path": "/s3proxy-healthcheck",
            "AWS_ACCESS_KEY_ID": placeholder("S3_UPLOADS_ACCESS_KEY_ID"),
            "AWS_SECRET_ACCESS_KEY": placeholder("S3_UPLOADS_SECRET_ACCESS_KEY"),
            "REGION": region,
        },
        networks=[NETWORK_NAME],
    )


def _auth_service(config: ResolvedConfig) -> ServiceSpec:
    return ServiceSpec(
        image=AUTH_IMAGE,
        environment={
            "SERVER_NAME": _env_str(config.hostname or ""),
            "SP_ENTITY_ID": placeholder("SP_ENTITY_ID"),
            "IDP_ENTITY_ID": placeholder("IDP_ENTITY_ID"),
            "SHIB_IDP_LOGOUT": placeholder("SHIB_IDP_LOGOUT", ""),
            "SHIB_SP_KEY": placeholder("SHIB_SP_KEY", ""),
            "SHIB_SP_CERT": placeholder("SHIB_SP_CERT", ""),
        },
        networks=[NETWORK_NAME],
    )


# ── Public API ──────────────────────────────────────────────────


def compile_topology(config: ResolvedConfig) -> TopologyDescriptor:
    """Compile a resolved configuration into a topology descriptor.

    Optional services appear only when toggled on, always in the
    order cache, proxy, federated auth.
    """
    db_volume, build_volume = volume_names(config.project_name)

    services: dict[str, ServiceSpec] = {
        DB_SERVICE: _db_service(config, db_volume),
        APP_SERVICE: _app_service(config, build_volume),
    }
    if config.services.cache:
        services[CACHE_SERVICE] = _cache_service(config)
    if config.services.proxy:
        services[PROXY_SERVICE] = _proxy_service()
    if config.services.federated_auth:
        services[AUTH_SERVICE] = _auth_service(config)

    descriptor = TopologyDescriptor(
        services=services,
        networks={NETWORK_NAME: NetworkSpec()},
        volumes={
            db_volume: VolumeSpec(name=db_volume),
            build_volume: VolumeSpec(name=build_volume),
        },
    )
    logger.debug(
        "Compiled topology for '%s': %s",
        config.project_name,
        ", ".join(services),
    )
    return descriptor


def render_compose(descriptor: TopologyDescriptor) -> str:
    """Serialize a descriptor to compose YAML, banner first."""
    body = yaml.safe_dump(
        descriptor.to_compose(),
        sort_keys=False,
        default_flow_style=False,
        width=4096,
    )
    return f"{BANNER}\n{body}"


def write_compose_file(config: ResolvedConfig) -> Path:
    """Validate, compile and write ``.wpenv/docker-compose.yml``.

    Nothing is written when validation fails.

    Returns:
        Path of the written descriptor.

    Raises:
        ConfigValidationError: If the configuration is invalid.
    """
    require_valid(config)
    content = render_compose(compile_topology(config))
    path = write_text_atomic(config.compose_path, content)
    logger.info("Generated %s", path)
    return path
