"""
Application Constants

This module contains all magic strings and numbers used throughout the application.
Centralizing constants makes the codebase more maintainable and easier to update.
"""

# ============================================================================
# Backend Tables & Buckets
# ============================================================================

PROFILES_TABLE = "profiles"
CONTACTS_TABLE = "contacts"

# ============================================================================
# Profile Defaults
# ============================================================================

DEFAULT_PROFILE_NAME = "New User"
DEFAULT_ROLE = "Member"
DEFAULT_LAST_LOGIN = "N/A"

# Deterministic placeholder avatars, seeded by profile id or a timestamp
AVATAR_PLACEHOLDER_URL = "https://picsum.photos/seed/{seed}/40/40"

# ============================================================================
# Auth Constants
# ============================================================================

MIN_PASSWORD_LENGTH = 6
REGISTRATION_SUCCESS_MESSAGE = "Registration successful! Please check your email to verify."

# ============================================================================
# Contact Constants
# ============================================================================

# Sentinel used by list filters for "no restriction"
FILTER_ALL = "All"

# Fields matched by the contact list search box
SEARCHABLE_FIELDS = (
    "name", "email", "company", "phone",
    "title", "industry", "city", "state",
    "country", "tags",
)

# Fields matched by the free-text query of the assistant's search tool
ASSISTANT_QUERY_FIELDS = ("name", "company", "email", "title")

SORTABLE_COLUMNS = (
    "name", "company", "title", "status", "email_status",
    "city", "state", "country", "industry", "phone", "website",
)

DEFAULT_SORT_COLUMN = "name"

# ============================================================================
# Assistant Constants
# ============================================================================

ASSISTANT_NAME = "NexusAI"
DEFAULT_SEARCH_RESULTS_LIMIT = 5
MAX_SEARCH_RESULTS_LIMIT = 100

ASSISTANT_SYSTEM_INSTRUCTION = (
    "You are NexusAI, an expert assistant for the NexusCRM. Your goal is to help the user "
    "manage their contacts efficiently. You can search for existing contacts and add new ones. "
    "You are integrated with a database of {contact_count} contacts. When asked to perform an "
    "action, use the available tools. For general conversation, be friendly, concise, and helpful. "
    "When you add a contact successfully, confirm it with a positive message and show the new "
    "contact's details."
)

ASSISTANT_GREETING = (
    "Hello! I'm NexusAI, your smart CRM assistant. I can help you find contacts or add new ones. "
    "For example, you could say \"Find contacts in the tech industry\" or \"Add a new lead named "
    "John Doe from Acme Inc.\" What can I help you with?"
)

ASSISTANT_CONNECTION_ERROR = "Sorry, I'm having trouble connecting to the AI service right now."
ASSISTANT_FALLBACK_MESSAGE = "I'm sorry, an error occurred while processing your request."

ASSISTANT_SUGGESTION_PROMPTS = [
    "Who are my most recent leads?",
    "Add Jane Smith from TechCorp as a customer",
    "Find contacts in California in the software industry",
    "Show me archived contacts",
]

# ============================================================================
# Plans
# ============================================================================

PLAN_CATALOG = [
    {
        "name": "Starter",
        "price": "$49/mo",
        "features": ["1,000 Contacts", "Basic Analytics", "Email Support"],
        "is_current": False,
    },
    {
        "name": "Professional",
        "price": "$99/mo",
        "features": ["5,000 Contacts", "Advanced Analytics", "User Management", "Priority Support"],
        "is_current": True,
    },
    {
        "name": "Enterprise",
        "price": "Custom",
        "features": ["Unlimited Contacts", "Full Analytics Suite", "Dedicated Account Manager", "API Access"],
        "is_current": False,
    },
]
