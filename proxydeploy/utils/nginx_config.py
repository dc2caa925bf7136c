"""Nginx site configuration for deployed applications."""

from ..config.settings import NGINX_SITES_AVAILABLE, NGINX_SITES_ENABLED, PUBLIC_HTTP_PORT

DEFAULT_SITE = "default"


def site_file_name(app_name: str) -> str:
    return f"{app_name}.conf"


def site_available_path(app_name: str) -> str:
    return f"{NGINX_SITES_AVAILABLE}/{site_file_name(app_name)}"


def site_enabled_path(app_name: str) -> str:
    return f"{NGINX_SITES_ENABLED}/{site_file_name(app_name)}"


def render_site_config(app_port: int, listen_port: int = PUBLIC_HTTP_PORT,
                       server_name: str = "_") -> str:
    """Render a reverse-proxy server block for an app listening on localhost.

    Forwards the original Host, the client address chain and the scheme, and
    passes WebSocket upgrades through without caching them.
    """
    return f"""server {{
    listen {listen_port};
    server_name {server_name};

    location / {{
        proxy_pass http://127.0.0.1:{app_port};
        proxy_http_version 1.1;
        proxy_set_header Upgrade $http_upgrade;
        proxy_set_header Connection 'upgrade';
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;
        proxy_cache_bypass $http_upgrade;
    }}
}}
"""
