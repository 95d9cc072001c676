"""jboss-deploy - drive a JBoss AS / WildFly server through its management API."""
from .exceptions import JBossDeployError

__version__ = "0.1.0"

__all__ = ["JBossDeployError", "__version__"]
