LINKED = "LINKED"
UNLINKED = "UNLINKED"
LINK_UPDATED = "LINK_UPDATED"
WHITELIST_CHANGED = "WHITELIST_CHANGED"
PRICING_CHANGED = "PRICING_CHANGED"
NEXT_ID_CHANGED = "NEXT_ID_CHANGED"
