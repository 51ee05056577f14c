from typing import List

from portal.core.domain.user import Role, User


def default_users() -> List[User]:
    """Seed directory used when the store holds nothing usable."""
    return [
        User(
            id="p1",
            name="Ana Torres",
            email="ana.torres@example.com",
            role=Role.PATIENT,
            profile={
                "age": "34",
                "bloodGroup": "A+",
                "phone": "+1 555 0101",
                "medicalHistory": ["Seasonal allergies"],
            },
        ),
        User(
            id="p2",
            name="Luis Romero",
            email="luis.romero@example.com",
            role=Role.PATIENT,
            profile={"age": "58", "bloodGroup": "B-", "medicalHistory": ["Hypertension"]},
        ),
        User(
            id="d1",
            name="Dr. Sarah Chen",
            email="sarah.chen@example.com",
            role=Role.DOCTOR,
            profile={"specialization": "Cardiology", "experience": "12 years"},
        ),
        User(
            id="d2",
            name="Dr. Omar Haddad",
            email="omar.haddad@example.com",
            role=Role.DOCTOR,
            profile={"specialization": "Pediatrics", "experience": "7 years"},
        ),
        User(
            id="a1",
            name="Admin",
            email="admin@example.com",
            role=Role.ADMIN,
        ),
    ]
