import structlog

from ...domain.entities import Account, Role, Section
from ...domain.errors import Conflict, NotFound, ValidationError
from ..authorization import require_role
from ..dto import Identity
from ..interfaces import IUnitOfWork

logger = structlog.get_logger()


def _approved_member(uow: IUnitOfWork, account_id: int, role: Role) -> Account:
    account = uow.accounts.get(account_id)
    if account is None:
        raise NotFound("User not found")
    if account.role is not role or not account.approved:
        raise ValidationError(f"User is not an approved {role.value}")
    return account


def _section(uow: IUnitOfWork, section_id: int) -> Section:
    section = uow.sections.get(section_id)
    if section is None:
        raise NotFound("Section not found")
    return section


class CreateSection:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def execute(self, actor: Identity, name: str, teacher_id: int) -> Section:
        require_role(actor, {Role.ADMIN})
        name = name.strip()
        if not name:
            raise ValidationError("Section name and teacher are required")
        _approved_member(self.uow, teacher_id, Role.TEACHER)
        if self.uow.sections.get_by_name(name):
            raise Conflict("A section with this name already exists")
        section = self.uow.sections.create(name, teacher_id)
        self.uow.commit()
        logger.info("section_created", section_id=section.id, teacher_id=teacher_id)
        return section


class AssignTeacher:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def execute(self, actor: Identity, section_id: int, teacher_id: int) -> Section:
        require_role(actor, {Role.ADMIN})
        _section(self.uow, section_id)
        _approved_member(self.uow, teacher_id, Role.TEACHER)
        section = self.uow.sections.set_teacher(section_id, teacher_id)
        self.uow.commit()
        logger.info("section_teacher_assigned", section_id=section_id, teacher_id=teacher_id)
        return section


class AddStudent:
    """Put a student in a section, moving them out of any previous one."""

    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def execute(self, actor: Identity, section_id: int, student_id: int) -> Section:
        require_role(actor, {Role.ADMIN})
        _section(self.uow, section_id)
        _approved_member(self.uow, student_id, Role.STUDENT)
        previous = self.uow.sections.section_of_student(student_id)
        section = self.uow.sections.add_student(section_id, student_id)
        self.uow.commit()
        logger.info("section_student_added", section_id=section_id, student_id=student_id,
                    moved_from=previous.id if previous and previous.id != section_id else None)
        return section


class RemoveStudent:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def execute(self, actor: Identity, section_id: int, student_id: int) -> Section:
        require_role(actor, {Role.ADMIN})
        _section(self.uow, section_id)
        if not self.uow.sections.remove_student(section_id, student_id):
            raise NotFound("Student is not in this section")
        self.uow.commit()
        logger.info("section_student_removed", section_id=section_id, student_id=student_id)
        return _section(self.uow, section_id)


class ListSections:
    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    def execute(self, actor: Identity) -> list[Section]:
        require_role(actor, {Role.ADMIN, Role.TEACHER})
        if actor.role is Role.ADMIN:
            return self.uow.sections.list()
        return self.uow.sections.list(teacher_id=actor.id)
