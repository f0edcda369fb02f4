from lexaccess.config.settings import (
    AccessPolicySettings,
    AccessPolicyLoader,
    get_access_policy_loader,
    reset_access_policy_loader,
)

__all__ = [
    "AccessPolicySettings",
    "AccessPolicyLoader",
    "get_access_policy_loader",
    "reset_access_policy_loader",
]
