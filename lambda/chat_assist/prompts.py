"""
Department lookup tables: system prompts and canned sources.

Lookups are exact-match on the department name.
"""

from typing import Dict, List

from .schemas import Source

DEPARTMENTS = ("HR", "Finance", "IT", "Operations", "General")

DEFAULT_DEPARTMENT = "General"

GENERIC_SYSTEM_PROMPT = (
    "You are a helpful enterprise assistant. Answer questions clearly and professionally."
)

DEPARTMENT_PROMPTS: Dict[str, str] = {
    "HR": (
        "You are an HR policy assistant. Help employees understand HR policies, benefits, "
        "leave procedures, and workplace guidelines. Be professional and cite policy documents "
        "when relevant."
    ),
    "Finance": (
        "You are a Finance department assistant. Help with expense reports, budget questions, "
        "financial procedures, and compliance guidelines. Be precise and reference financial policies."
    ),
    "IT": (
        "You are an IT support assistant. Help with software requests, security policies, "
        "technical procedures, and system access. Be clear and reference IT documentation."
    ),
    "Operations": (
        "You are an Operations assistant. Help with procurement, vendor management, supply chain "
        "questions, and operational procedures. Be efficient and reference operational guidelines."
    ),
}

DEPARTMENT_SOURCES: Dict[str, List[Dict[str, str]]] = {
    "HR": [
        {"title": "Employee Handbook v3.2", "type": "document", "reference": "HR-DOC-001"},
        {"title": "HR Policy Guidelines", "type": "policy", "reference": "HR-POL-002"},
    ],
    "Finance": [
        {"title": "Financial Procedures Manual", "type": "document", "reference": "FIN-DOC-001"},
        {"title": "Expense Policy 2024", "type": "policy", "reference": "FIN-POL-001"},
    ],
    "IT": [
        {"title": "IT Security Handbook", "type": "document", "reference": "IT-DOC-001"},
        {"title": "Software Request Portal", "type": "link", "reference": "IT-SYS-001"},
    ],
    "Operations": [
        {"title": "Operations Manual", "type": "document", "reference": "OPS-DOC-001"},
        {"title": "Vendor Guidelines", "type": "policy", "reference": "OPS-POL-001"},
    ],
}


def get_system_prompt(department: str) -> str:
    """System prompt for a department, or the generic prompt."""
    return DEPARTMENT_PROMPTS.get(department, GENERIC_SYSTEM_PROMPT)


def get_department_sources(department: str) -> List[Source]:
    """Canned sources for a department; empty for unknown departments."""
    return [Source(**source) for source in DEPARTMENT_SOURCES.get(department, [])]
