# Models package — import all models here so Alembic can discover them.

from tracker.models.user import User  # noqa: F401
from tracker.models.project import Project, ProjectPic, Phase  # noqa: F401
from tracker.models.bug import Bug  # noqa: F401
from tracker.models.audit import AuditLogEntry  # noqa: F401
from tracker.models.parameter import Parameter, ParameterVersion  # noqa: F401
from tracker.models.message import Message  # noqa: F401
