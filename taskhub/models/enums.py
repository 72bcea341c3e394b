# taskhub/models/enums.py
import enum


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"
    MANAGER = "manager"


class ProjectStatus(str, enum.Enum):
    PLANNING = "Planning"
    IN_PROGRESS = "In Progress"
    ON_HOLD = "On Hold"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class Priority(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class MemberRole(str, enum.Enum):
    MEMBER = "Member"
    LEAD = "Lead"
    CONTRIBUTOR = "Contributor"


class ProjectType(str, enum.Enum):
    INTERNAL = "Internal"
    CLIENT = "Client"
    PERSONAL = "Personal"
    RESEARCH = "Research"


class TaskStatus(str, enum.Enum):
    TODO = "Todo"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


class TaskCategory(str, enum.Enum):
    DEVELOPMENT = "Development"
    DESIGN = "Design"
    TESTING = "Testing"
    DOCUMENTATION = "Documentation"
    MEETING = "Meeting"
    RESEARCH = "Research"
    OTHER = "Other"


# Rank used when sorting by priority
PRIORITY_RANK = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
    Priority.URGENT: 4,
}


def enum_column_values(enum_cls):
    """Persist enum values ("In Progress") rather than member names"""
    return [member.value for member in enum_cls]
