"""Function declarations exposed to the assistant model."""
from google.genai import types

SEARCH_CONTACTS = "searchContacts"
ADD_CONTACT = "addContact"


def _string(description: str) -> types.Schema:
    return types.Schema(type=types.Type.STRING, description=description)


search_contacts_declaration = types.FunctionDeclaration(
    name=SEARCH_CONTACTS,
    description="Searches for contacts based on various criteria like name, company, industry, status, location, or tags.",
    parameters=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "query": _string("A general search term. Can be a name, company, email, title, etc."),
            "status": _string('The status of the contact. Can be "Lead", "Customer", or "Archived".'),
            "industry": _string('The industry the contact or their company belongs to, e.g., "Healthcare", "Technology".'),
            "city": _string("The city where the contact is located."),
            "state": _string("The state where the contact is located."),
            "country": _string("The country where the contact is located."),
            "tags": _string('A single tag or comma-separated tags associated with the contact, e.g., "saas,b2b".'),
            "limit": types.Schema(
                type=types.Type.INTEGER,
                description="The maximum number of contacts to return. Defaults to 5 if not specified.",
            ),
        },
    ),
)

add_contact_declaration = types.FunctionDeclaration(
    name=ADD_CONTACT,
    description="Adds a new contact to the CRM. All parameters are optional, but providing at least a name is required.",
    parameters=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "name": _string("Full name of the contact. This is the primary identifier."),
            "email": _string("Email address of the contact."),
            "phone": _string("Phone number of the contact."),
            "company": _string("Company the contact works for."),
            "title": _string("Job title of the contact."),
            "status": _string('Status of the contact. Can be "Lead" or "Customer". Defaults to "Lead" if not provided.'),
            "tags": _string('A single tag or comma-separated list of tags to categorize the contact, e.g., "saas,b2b".'),
            "notes": _string("Any relevant notes about the contact."),
        },
        required=["name"],
    ),
)

CONTACT_TOOLS = types.Tool(function_declarations=[search_contacts_declaration, add_contact_declaration])
