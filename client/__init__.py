# =============================================================================
# Plant Disease Gateway - Client Package
# =============================================================================
# This package contains the HTTP client and CLI used to submit leaf images
# to a running gateway and read back the diagnosis.
# =============================================================================
