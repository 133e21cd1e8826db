"""Plain-dict views of entities returned by the services."""

from campushub.database.entities import Message, User


def iso(value):
    return value.isoformat() if value is not None else None


def public_user(user: User):
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "avatar": user.avatar}


def user_view(user: User):
    """Full user without the password hash."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "avatar": user.avatar,
        "role": user.role.value,
        "status": user.status.value,
        "last_login": iso(user.last_login),
        "created_at": iso(user.created_at),
    }


def profile_view(user: User):
    data = user_view(user)
    data["fellow"] = None
    data["mentor"] = None
    data["communities"] = []
    if user.fellow is not None:
        f = user.fellow
        data["fellow"] = {
            "team": f.team,
            "department": f.department,
            "bio": f.bio,
            "interests": list(f.interests or []),
        }
    if user.mentor is not None:
        m = user.mentor
        data["mentor"] = {
            "title": m.title,
            "company": m.company,
            "expertise": list(m.expertise or []),
            "bio": m.bio,
            "experience": m.experience,
        }
    for link in user.community_admins:
        data["communities"].append(
            {"id": link.community.id, "name": link.community.name, "slug": link.community.slug,
             "status": link.community.status, "role": link.role}
        )
    return data


def message_view(message: Message):
    return {
        "id": message.id,
        "conversation_id": message.conversation_id,
        "sender_id": message.sender_id,
        "content": message.content,
        "is_read": message.is_read,
        "timestamp": iso(message.created_at),
        "sender": public_user(message.sender),
    }
