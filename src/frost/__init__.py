"""Frost.

Keep AWS SSO credentials fresh and fan them out into AWS CLI profiles and
EKS kubeconfig entries.
"""

__version__ = "0.1.0"
__author__ = "Platform Engineering Team"
__license__ = "Apache-2.0"
