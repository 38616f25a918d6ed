"""
Permissions Configuration
Defines the features of the admin backend and the actions available on each.
Admins hold every permission. Moderators are granted actions per feature
through the moderator_permissions table (can_view, can_create, ...).
"""

# Define features and their actions
FEATURES = {
    "books": {
        "actions": ["view", "create", "edit", "delete"],
        "description": "Books"
    },
    "blog": {
        "actions": ["view", "create", "edit", "delete", "approve"],
        "description": "Blog Posts"
    },
    "events": {
        "actions": ["view", "create", "edit", "delete"],
        "description": "Events"
    },
    "users": {
        "actions": ["view", "edit", "delete"],
        "description": "User Management"
    },
    "subscriptions": {
        "actions": ["view", "edit"],
        "description": "Subscription administration"
    },
    "site": {
        "actions": ["view", "create", "edit", "delete"],
        "description": "Home page sections, hero blocks and themes"
    },
    "cookies": {
        "actions": ["view", "edit"],
        "description": "Cookie consent and GDPR tooling"
    },
    "security": {
        "actions": ["view", "edit"],
        "description": "Security monitoring"
    },
    "deployments": {
        "actions": ["view", "create", "edit", "delete"],
        "description": "AWS deployment orchestration"
    },
}

# Features a moderator can never be granted, whatever moderator_permissions says
ADMIN_ONLY_FEATURES = {"deployments", "security", "subscriptions"}

# moderator_permissions column holding each action
ACTION_COLUMNS = {
    "view": "can_view",
    "create": "can_create",
    "edit": "can_edit",
    "delete": "can_delete",
    "approve": "can_approve",
}

ROLES = ("admin", "moderator", "user")


def parse_permission(permission: str) -> tuple:
    """Split "feature:action" and validate both parts against FEATURES."""
    feature, _, action = permission.partition(":")
    if feature not in FEATURES or action not in FEATURES[feature]["actions"]:
        raise ValueError(f"Unknown permission: {permission}")
    return feature, action


def permissions_from_rows(rows: list) -> list:
    """Translate moderator_permissions rows into "feature:action" names."""
    names = []
    for row in rows:
        feature = row.get("feature")
        if feature not in FEATURES or feature in ADMIN_ONLY_FEATURES:
            continue
        for action in FEATURES[feature]["actions"]:
            if row.get(ACTION_COLUMNS[action]):
                names.append(f"{feature}:{action}")
    return sorted(names)


def get_permission_matrix():
    """
    Returns a dictionary with all permissions
    Format: {
        "permissions": [
            {"name": "books:view", "feature": "books", "action": "view", "description": "..."},
            ...
        ],
        "roles": ["admin", "moderator", "user"]
    }
    """
    permissions = []
    for feature, config in FEATURES.items():
        for action in config["actions"]:
            permissions.append({
                "name": f"{feature}:{action}",
                "feature": feature,
                "action": action,
                "description": f"{action.capitalize()} {config['description']}",
                "admin_only": feature in ADMIN_ONLY_FEATURES
            })
    return {
        "permissions": permissions,
        "roles": list(ROLES)
    }


PERMISSION_MATRIX = get_permission_matrix()
