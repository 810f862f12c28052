"""
Deployment trigger.

Issues the same Dokploy request the generated CI workflow sends, for
redeploying from a workstation:

    viteship deploy trigger
"""

from .dokploy import DokployClient, DokployDeployment

__all__ = [
    "DokployClient",
    "DokployDeployment",
]
