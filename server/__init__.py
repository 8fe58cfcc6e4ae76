# =============================================================================
# Plant Disease Gateway - Server Package
# =============================================================================
# This package contains the server-side components responsible for receiving
# leaf image uploads, staging them on disk, forwarding them to the Gemini
# API, and relaying the diagnosis text.
# =============================================================================
