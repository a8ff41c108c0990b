from __future__ import annotations

from app.core.errors import InvalidRequest
from app.schemas.networking import NetworkingRequest, NetworkingResponse

DEFAULT_MESSAGE_TYPE = "intro_email"
SKILLS_PREVIEW_CHARS = 100

TEMPLATES = {
    "linkedin_message": (
        "Hi {contact_name},\n\n"
        "I noticed your role at {company_name} and I'm interested in the {role} position. "
        "My background includes {skills}.\n\n"
        "Would you be open to a quick conversation about the team and opportunities at {company_name}?\n\n"
        "Thank you for your time,\n"
        "[Your Name]"
    ),
    "intro_email": (
        "Subject: {role} Position Inquiry\n\n"
        "Dear {contact_name},\n\n"
        "I hope this email finds you well. I'm writing to express my interest in the {role} position "
        "at {company_name}.\n\n"
        "My skills include {skills}, which I believe align well with what you're looking for.\n\n"
        "I'd appreciate the opportunity to discuss how my background might be a good fit for your team.\n\n"
        "Thank you for your consideration.\n\n"
        "Best regards,\n"
        "[Your Name]"
    ),
    "cover_letter": (
        "Dear {contact_name},\n\n"
        "I am writing to express my interest in the {role} position at {company_name}. With my "
        "background in {skills}, I believe I would be a valuable addition to your team.\n\n"
        "Throughout my career, I have developed strong skills in these areas, allowing me to deliver "
        "results effectively and efficiently.\n\n"
        "I am excited about the opportunity to bring my unique skills and experiences to {company_name} "
        "and would welcome the chance to discuss how I can contribute to your organization.\n\n"
        "Thank you for considering my application.\n\n"
        "Sincerely,\n"
        "[Your Name]"
    ),
}


def skills_preview(resume_text: str) -> str:
    text = resume_text.strip()
    if len(text) > SKILLS_PREVIEW_CHARS:
        return text[:SKILLS_PREVIEW_CHARS] + "..."
    return text


def generate_outreach_message(payload: NetworkingRequest) -> NetworkingResponse:
    if not (
        payload.company_name.strip()
        and payload.role.strip()
        and payload.resume_text.strip()
        and payload.message_type.strip()
    ):
        raise InvalidRequest("Missing required fields")

    message_type = payload.message_type.strip().lower()
    if message_type not in TEMPLATES:
        message_type = DEFAULT_MESSAGE_TYPE

    message = TEMPLATES[message_type].format(
        contact_name=(payload.contact_name or "").strip() or "Hiring Manager",
        company_name=payload.company_name.strip(),
        role=payload.role.strip(),
        skills=skills_preview(payload.resume_text),
    )
    return NetworkingResponse(message=message, message_type=message_type)
