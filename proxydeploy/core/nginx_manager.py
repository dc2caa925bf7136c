"""
Reverse proxy configuration for proxydeploy.

Writes the application's nginx site, activates it, checks the complete
nginx configuration and reloads the service. A site that fails the check
is deactivated again so nginx is never left serving a broken config.
"""

import shlex

from ..config.settings import NGINX_SITES_AVAILABLE, NGINX_SITES_ENABLED
from ..exceptions import ProxyConfigError
from ..utils.logging import log_error, log_phase, log_success, log_warning
from ..utils.nginx_config import (
    DEFAULT_SITE,
    render_site_config,
    site_available_path,
    site_enabled_path,
)
from .stage import StageReport, StepStatus


class NginxManager:
    """Installs and removes the nginx site for one application."""

    def __init__(self, executor, app_name: str, app_port: int = 0,
                 disable_default_site: bool = True):
        """Initialize nginx manager.

        Args:
            executor: RemoteExecutor bound to the target
            app_name: Logical application name keying the site files
            app_port: Port the container is published on
            disable_default_site: Deactivate the distribution's catch-all site,
                which would otherwise answer requests on port 80 first
        """
        self.executor = executor
        self.app_name = app_name
        self.app_port = app_port
        self.disable_default_site = disable_default_site
        self.available = site_available_path(app_name)
        self.enabled = site_enabled_path(app_name)
        self.default_available = f"{NGINX_SITES_AVAILABLE}/{DEFAULT_SITE}"
        self.default_enabled = f"{NGINX_SITES_ENABLED}/{DEFAULT_SITE}"

    def configure(self) -> StageReport:
        """Write, activate, verify and reload the application's site.

        Raises:
            ProxyConfigError: If any step fails
        """
        log_phase(f"Configuring nginx reverse proxy (80 -> container:{self.app_port})...")
        report = StageReport("proxy")

        document = render_site_config(self.app_port)
        self._require(
            self.executor.execute(f"tee {shlex.quote(self.available)} >/dev/null",
                                  sudo=True, input_text=document),
            "write site configuration",
        )
        report.record("write-site", StepStatus.APPLIED, self.available)

        default_disabled = False
        if self.disable_default_site:
            default_disabled = self._disable_default_site(report)

        self._require(
            self.executor.execute(
                f"ln -sf {shlex.quote(self.available)} {shlex.quote(self.enabled)}", sudo=True),
            "enable site",
        )
        report.record("enable-site", StepStatus.APPLIED, self.enabled)

        check = self.executor.execute("nginx -t", sudo=True)
        if not check.ok:
            log_error("nginx configuration test failed, deactivating site")
            rollback = self.executor.execute(f"rm -f {shlex.quote(self.enabled)}", sudo=True)
            details = {"rolled_back": rollback.ok, "output": check.stderr}
            if default_disabled:
                details["default_site_restored"] = self._restore_default_site(report)
            raise ProxyConfigError(
                f"nginx configuration test failed: {check.describe()}",
                details=details,
            )
        report.record("config-test", StepStatus.PASSED)

        self._require(self.executor.execute("systemctl reload nginx", sudo=True), "reload nginx")
        report.record("reload", StepStatus.APPLIED)

        log_success("Nginx configured & reloaded.")
        return report

    def remove(self, report: StageReport) -> None:
        """Best-effort removal of the site, then a checked reload.

        Every step runs regardless of earlier outcomes; failures are recorded
        as tolerated. The distribution's default site is re-enabled when its
        configuration is still installed.
        """
        for name, command in (
            ("remove-enabled", f"rm -f {shlex.quote(self.enabled)}"),
            ("remove-available", f"rm -f {shlex.quote(self.available)}"),
        ):
            result = self.executor.execute(command, sudo=True)
            report.record(name, StepStatus.APPLIED if result.ok else StepStatus.TOLERATED,
                          "" if result.ok else result.describe())

        if self.disable_default_site:
            self._restore_default_site(report)

        check = self.executor.execute("nginx -t", sudo=True)
        if not check.ok:
            report.record("config-test", StepStatus.TOLERATED, check.describe())
            report.record("reload", StepStatus.SKIPPED, "configuration test failed")
            return
        report.record("config-test", StepStatus.PASSED)

        reload = self.executor.execute("systemctl reload nginx", sudo=True)
        report.record("reload", StepStatus.APPLIED if reload.ok else StepStatus.TOLERATED,
                      "" if reload.ok else reload.describe())

    def _disable_default_site(self, report: StageReport) -> bool:
        """Deactivate the default site. Returns True if this call removed it."""
        enabled = shlex.quote(self.default_enabled)
        if not self.executor.execute(f"test -e {enabled}").ok:
            report.record("disable-default-site", StepStatus.SKIPPED, "not enabled")
            return False

        result = self.executor.execute(f"rm -f {enabled}", sudo=True)
        report.record("disable-default-site",
                      StepStatus.APPLIED if result.ok else StepStatus.TOLERATED,
                      "" if result.ok else result.describe())
        return result.ok

    def _restore_default_site(self, report: StageReport) -> bool:
        """Re-enable the default site if its configuration is still installed."""
        available = shlex.quote(self.default_available)
        if not self.executor.execute(f"test -f {available}").ok:
            report.record("restore-default-site", StepStatus.SKIPPED, "not installed")
            return False

        result = self.executor.execute(
            f"ln -sf {available} {shlex.quote(self.default_enabled)}", sudo=True)
        if not result.ok:
            log_warning(f"Could not re-enable the default nginx site: {result.describe()}")
        report.record("restore-default-site",
                      StepStatus.APPLIED if result.ok else StepStatus.TOLERATED,
                      "" if result.ok else result.describe())
        return result.ok
