# Every python-ldap call in ldapscript goes through this module so that tests
# can patch ``ldapscript.ldap.initialize`` with python-ldap-faker.
import ldap
from ldap import *  # noqa: F403

__version__ = ldap.__version__
