import re
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from campushub.database.entities import Community, CommunityAdmin, FellowProfile, MentorProfile


def slugify(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


class ProfileDao:
    """Creates the role-specific rows that accompany a new user."""

    def __init__(self, session: Session):
        self.session = session

    def create_fellow(self, user_id: int, team: Optional[str] = None, department: Optional[str] = None,
                      bio: Optional[str] = None, interests: Iterable[str] = ()) -> FellowProfile:
        profile = FellowProfile(
            user_id=user_id, team=team, department=department, bio=bio, interests=list(interests)
        )
        self.session.add(profile)
        self.session.flush()
        return profile

    def create_mentor(self, user_id: int, title: str, company: str = "", expertise: Iterable[str] = (),
                      bio: str = "", experience: str = "") -> MentorProfile:
        profile = MentorProfile(
            user_id=user_id,
            title=title,
            company=company or "",
            expertise=list(expertise),
            bio=bio or "",
            experience=experience or "",
        )
        self.session.add(profile)
        self.session.flush()
        return profile

    def create_community_admin(self, user_id: int, community_name: str, description: str = "",
                               category: str = "Social") -> CommunityAdmin:
        """Create a PENDING community and make `user_id` its admin."""
        community = Community(
            name=community_name,
            slug=slugify(community_name),
            description=description or "",
            category=category or "Social",
            status="PENDING",
        )
        self.session.add(community)
        self.session.flush()

        link = CommunityAdmin(user_id=user_id, community_id=community.id, role="admin")
        self.session.add(link)
        self.session.flush()
        return link
