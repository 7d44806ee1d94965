"""Project models.

- Project: a timeline entry with a short unique code. Owned by its creator.
- ProjectPic: "person in charge" join row assigning users to a project.
- Phase: an ordered timeline segment belonging to exactly one project.
"""

import uuid

from tracker.extensions import db


class Project(db.Model):
    __tablename__ = "projects"

    PRIORITIES = ["Low", "Medium", "High", "Critical"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    code = db.Column(db.String(50), unique=True, nullable=False)
    name = db.Column(db.String(255), nullable=False)
    priority = db.Column(db.String(50), default="Medium", nullable=False)
    status = db.Column(db.String(50), default="Active", nullable=False)
    description = db.Column(db.Text, nullable=True)
    icon = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    documents = db.Column(db.JSON, default=list)
    archived = db.Column(db.Boolean, default=False, nullable=False)
    created_by = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=True
    )
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    creator = db.relationship("User", back_populates="created_projects")
    pics = db.relationship(
        "ProjectPic",
        back_populates="project",
        cascade="all, delete-orphan",
    )
    phases = db.relationship(
        "Phase",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Phase.position",
    )
    bugs = db.relationship("Bug", back_populates="project", lazy="dynamic")

    def __repr__(self):
        return f"<Project {self.code}>"


class ProjectPic(db.Model):
    __tablename__ = "project_pics"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    project_id = db.Column(
        db.String(36),
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Null for free-text PICs that aren't registered users.
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
    )
    name = db.Column(db.String(255), nullable=False)
    avatar = db.Column(db.String(500), nullable=True)

    # --- Relationships ---
    project = db.relationship("Project", back_populates="pics")
    user = db.relationship("User", back_populates="project_assignments")

    def __repr__(self):
        return f"<ProjectPic project={self.project_id} user={self.user_id}>"


class Phase(db.Model):
    __tablename__ = "phases"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    project_id = db.Column(
        db.String(36),
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = db.Column(db.String(255), nullable=False)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(50), default="pending", nullable=False)
    progress = db.Column(db.Integer, default=0, nullable=False)  # 0-100
    position = db.Column(db.Integer, default=0, nullable=False)

    # --- Relationships ---
    project = db.relationship("Project", back_populates="phases")

    def __repr__(self):
        return f"<Phase {self.name} ({self.status})>"
