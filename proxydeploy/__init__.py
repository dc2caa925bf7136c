"""proxydeploy: single-host Docker + nginx deployments over SSH."""

from proxydeploy.config.settings import AUTHOR as __author__
from proxydeploy.config.settings import VERSION as __version__

__all__ = ["__author__", "__version__"]
