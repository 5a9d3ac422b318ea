from sandbox_persist.e2b_sandbox.mount import RcloneMountManager
from sandbox_persist.e2b_sandbox.runner import E2BCommandRunner, E2BProcess

__all__ = ["E2BCommandRunner", "E2BProcess", "RcloneMountManager"]
