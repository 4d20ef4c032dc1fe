"""
Central constants for the CRM application.
"""
from __future__ import annotations

# The seed SuperAdmin is created at initialization and can never be deleted.
SEED_SUPER_ADMIN_ID = "1"

# Lifecycle bands, in weeks since the deal date (upper bounds inclusive).
ONBOARDING_MAX_WEEKS = 2
STABLE_MAX_WEEKS = 8
RENEWAL_MAX_WEEKS = 12

# Follow-up bands, in whole days since the last save (upper bounds inclusive).
NORMAL_MAX_DAYS = 3
WARNING_MAX_DAYS = 14

MAX_IMAGE_UPLOAD_BYTES = 10 * 1024 * 1024

PLATFORM_LABELS = {
    "xiaohongshu": "Xiaohongshu (Little Red Book)",
    "xianyu": "Xianyu (Idle Fish)",
}
