# =============================================================================
# Plant Disease Gateway - Shared Package
# =============================================================================
# Data contracts shared by the server and the client.
# =============================================================================
