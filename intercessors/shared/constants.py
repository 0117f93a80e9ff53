ASSIGNMENT_ACTIVE = "active"
ASSIGNMENT_MISSED = "missed"
ASSIGNMENT_SKIPPED = "skipped"
ASSIGNMENT_RELEASED = "released"

# Statuses that keep a time range occupied.
HELD_STATUSES = (ASSIGNMENT_ACTIVE, ASSIGNMENT_MISSED, ASSIGNMENT_SKIPPED)

ATTENDED = "attended"
MISSED = "missed"
ATTENDANCE_STATUSES = (ATTENDED, MISSED)

SKIP_PENDING = "pending"
SKIP_APPROVED = "approved"
SKIP_REJECTED = "rejected"
SKIP_STATUSES = (SKIP_PENDING, SKIP_APPROVED, SKIP_REJECTED)
MIN_SKIP_DAYS = 1

PROGRAM_UPCOMING = "upcoming"
PROGRAM_REGISTRATION_OPEN = "registration_open"
PROGRAM_PREPARATION = "preparation"
PROGRAM_ACTIVE = "active"
PROGRAM_COMPLETED = "completed"
PROGRAM_CANCELLED = "cancelled"

# Phase labels exposed on the active program read model.
PHASE_LABELS = {
    PROGRAM_UPCOMING: "pre_registration",
    PROGRAM_REGISTRATION_OPEN: "registration_open",
    PROGRAM_PREPARATION: "preparation",
    PROGRAM_ACTIVE: "active_fasting",
    PROGRAM_COMPLETED: "completed",
    PROGRAM_CANCELLED: "cancelled",
}

MONTHLY_TEMPLATE_NAME = "Monthly 3-Day Fast"
MONTHLY_START_HOUR = 18

UPDATE_PRIORITIES = {"critical": 4, "high": 3, "normal": 2, "low": 1}
UPDATE_EXPIRY_DAYS = {
    "never": None,
    "1day": 1,
    "3days": 3,
    "1week": 7,
    "1month": 30,
}

DEFAULT_TEMPLATES = [
    {
        "template_name": MONTHLY_TEMPLATE_NAME,
        "template_description": "Standard monthly 3-day prayer and fasting event",
        "duration_days": 3,
        "default_title": "3 Days & 3 Nights Prayer & Fasting",
        "default_subtitle": "Monthly Global Intercession Event",
        "default_description": (
            "Join Global Intercessors worldwide for 3 days of powerful prayer and "
            "fasting. Seek God's face together as we intercede for breakthrough "
            "and revival."
        ),
        "default_prayer_focus": (
            "Revival, Breakthrough, National Healing, Family Restoration"
        ),
        "default_instructions": (
            "Prepare your heart through prayer. Fast according to your spiritual "
            "maturity and health condition. Stay hydrated and seek medical advice "
            "if needed."
        ),
    },
    {
        "template_name": "New Year Consecration",
        "template_description": "Special New Year consecration and dedication fast",
        "duration_days": 3,
        "default_title": "New Year Consecration Fast",
        "default_subtitle": "Starting the Year in God's Presence",
        "default_description": (
            "Begin the new year with consecration, prayer, and seeking God's "
            "direction for the year ahead."
        ),
        "default_prayer_focus": (
            "Divine Direction, Fresh Anointing, New Beginnings, Breakthrough"
        ),
        "default_instructions": (
            "This is a time of consecration and seeking God's face for the new "
            "year. Fast with expectation for fresh anointing and divine direction."
        ),
    },
    {
        "template_name": "Mid-Year Revival Fast",
        "template_description": "Mid-year revival and renewal fasting event",
        "duration_days": 3,
        "default_title": "Mid-Year Revival Fast",
        "default_subtitle": "Renewing Our Passion for God",
        "default_description": (
            "Join us at mid-year for renewal, revival, and fresh passion for God. "
            "Reset your spiritual focus and seek fresh fire."
        ),
        "default_prayer_focus": (
            "Revival Fire, Spiritual Renewal, Fresh Anointing, Passion for God"
        ),
        "default_instructions": (
            "This is a time to reset and renew. Seek God for fresh fire and "
            "renewed passion for His presence and purposes."
        ),
    },
    {
        "template_name": "Harvest Season Fast",
        "template_description": "End-of-year harvest and thanksgiving fast",
        "duration_days": 3,
        "default_title": "Harvest Season Prayer & Fasting",
        "default_subtitle": "Gathering the End-Time Harvest",
        "default_description": (
            "Join us for powerful intercession for the end-time harvest of souls "
            "and God's kingdom purposes."
        ),
        "default_prayer_focus": (
            "Soul Harvest, Evangelism, Mission Breakthrough, Kingdom Purposes"
        ),
        "default_instructions": (
            "Focus on praying for the lost, for evangelism breakthrough, and for "
            "God's kingdom purposes to be fulfilled."
        ),
    },
]
