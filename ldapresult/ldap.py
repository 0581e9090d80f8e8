# Everything in this package imports python-ldap through this module so that
# tests can patch a single name instead of hunting down every ``import ldap``.
import ldap
from ldap import *  # noqa: F403

__version__ = ldap.__version__
