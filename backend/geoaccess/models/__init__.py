from .tenancy import Organization
from .location import LocationAccessRequest, AllowedLocation, OrganizationLocationPolicy
from .audit import LocationAuditEvent

__all__ = [
    'Organization',
    'LocationAccessRequest', 'AllowedLocation', 'OrganizationLocationPolicy',
    'LocationAuditEvent',
]
