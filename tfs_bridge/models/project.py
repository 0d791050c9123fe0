"""Project and team member data models"""
from dataclasses import dataclass, field
from typing import Optional, Dict, List, Tuple


@dataclass(frozen=True)
class ProjectInfo:
    """A team project and the ids of everyone on its teams"""
    id: str
    name: str
    description: Optional[str] = None
    member_ids: Tuple[str, ...] = ()

    def to_dict(self):
        """Convert to dictionary representation"""
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'member_ids': list(self.member_ids)
        }


@dataclass(frozen=True)
class TeamMemberInfo:
    """A team member and the ids of the projects they belong to"""
    id: str
    display_name: str
    unique_name: Optional[str] = None
    profile_url: Optional[str] = None
    image_url: Optional[str] = None
    project_ids: Tuple[str, ...] = ()

    @classmethod
    def from_identity(cls, identity: Dict) -> 'TeamMemberInfo':
        """Build from an identity reference as returned by the team members endpoint"""
        # Newer servers wrap the identity in a TeamMember record
        identity = identity.get('identity', identity)
        return cls(
            id=identity['id'],
            display_name=identity.get('displayName', ''),
            unique_name=identity.get('uniqueName'),
            profile_url=identity.get('profileUrl') or identity.get('url'),
            image_url=identity.get('imageUrl')
        )

    def to_dict(self):
        """Convert to dictionary representation"""
        return {
            'id': self.id,
            'display_name': self.display_name,
            'unique_name': self.unique_name,
            'profile_url': self.profile_url,
            'image_url': self.image_url,
            'project_ids': list(self.project_ids)
        }


@dataclass(frozen=True)
class DirectorySnapshot:
    """Projects and members loaded in one pass, cross-referenced by id"""
    projects: Dict[str, ProjectInfo] = field(default_factory=dict)
    members: Dict[str, TeamMemberInfo] = field(default_factory=dict)

    def members_of(self, project_id: str) -> List[TeamMemberInfo]:
        """Members of a project, in the order they were first seen"""
        project = self.projects.get(project_id)
        if project is None:
            return []
        return [self.members[member_id] for member_id in project.member_ids]

    def projects_of(self, member_id: str) -> List[ProjectInfo]:
        """Projects a member belongs to, in project load order"""
        member = self.members.get(member_id)
        if member is None:
            return []
        return [self.projects[project_id] for project_id in member.project_ids]
