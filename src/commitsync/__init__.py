"""
commitsync - Commit synchronization for local git repositories

Reports the commits added to and removed from local history to a remote
service, exactly once per change, across interrupted runs.
"""

__version__ = "0.4.0"

# Re-export core models for convenience
from commitsync.core.commits.models import Commit
from commitsync.core.reconcile.models import Delta, ReconcileResult, ReconcileState

__all__ = ["Commit", "Delta", "ReconcileResult", "ReconcileState", "__version__"]
