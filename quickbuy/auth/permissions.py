"""
Central registry of allowed actions per role.
"""
ROLE_SCOPES = {
    "buyer":  {"manage_cart", "checkout", "view_orders", "confirm_payment"},
    # Sellers manage the catalog through the CLI for now
    "seller": set(),
    "admin":  {"*"},
}

def role_has_scope(role: str, action: str) -> bool:
    scopes = ROLE_SCOPES.get(role, set())
    return "*" in scopes or action in scopes
