"""
Mail templates and providers
"""
import re
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from quasar.core.errors import AppError, ModuleCode, OperationCode
from quasar.core.logging_config import LoggingConfig
from quasar.models.mail import MailProvider, MailTemplate
from quasar.repositories.base import BaseRepository

logger = LoggingConfig.get_logger(__name__)

# {{ name }} / {{name}} / {{ customer.name }}
PLACEHOLDER = re.compile(r'\{\{\s*([A-Za-z_][\w.]*)\s*\}\}')


def extract_variables(*texts: Optional[str]) -> List[str]:
    """Placeholder names in order of first appearance"""
    seen: List[str] = []
    for text in texts:
        for name in PLACEHOLDER.findall(text or ""):
            if name not in seen:
                seen.append(name)
    return seen


def render(text: str, variables: Dict[str, Any]) -> Tuple[str, List[str]]:
    """Replace known placeholders; unknown ones are left in place and reported"""
    missing: List[str] = []

    def substitute(match: re.Match) -> str:
        name = match.group(1)
        if name in variables and variables[name] is not None:
            return str(variables[name])
        if name not in missing:
            missing.append(name)
        return match.group(0)

    return PLACEHOLDER.sub(substitute, text or ""), missing


class MailTemplateService:

    def __init__(self, db: Session):
        self.db = db
        self.templates = BaseRepository(db, MailTemplate)

    def list_templates(self, page: int = 1, limit: int = 20, search: Optional[str] = None,
                       type: Optional[str] = None, is_active: Optional[bool] = None,
                       language: Optional[str] = None) -> Tuple[List[MailTemplate], int]:
        query = self.templates.query()
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(MailTemplate.name.ilike(pattern), MailTemplate.subject.ilike(pattern)))
        if type:
            query = query.filter(MailTemplate.type == type)
        if is_active is not None:
            query = query.filter(MailTemplate.is_active.is_(is_active))
        if language:
            query = query.filter(MailTemplate.language == language)
        return self.templates.paginate(query.order_by(MailTemplate.name), page, limit)

    def get_template(self, template_id: UUID) -> MailTemplate:
        template = self.templates.find_by_id(template_id)
        if not template:
            raise AppError.not_found(ModuleCode.EMAIL, "Mail template", template_id)
        return template

    def get_by_name(self, name: str) -> MailTemplate:
        template = self.templates.query().filter(MailTemplate.name == name).first()
        if not template:
            raise AppError.not_found(ModuleCode.EMAIL, "Mail template", name)
        return template

    def create_template(self, data: Dict[str, Any], actor_id: Optional[UUID] = None) -> MailTemplate:
        self._ensure_name_free(data["name"])
        values = dict(data)
        if not values.get("variables"):
            values["variables"] = extract_variables(values.get("subject"), values.get("body"))
        template = self.templates.create(**values, created_by=actor_id, updated_by=actor_id)
        self.db.commit()
        self.db.refresh(template)
        logger.info(f"Created mail template {template.name}")
        return template

    def update_template(self, template_id: UUID, data: Dict[str, Any],
                        actor_id: Optional[UUID] = None) -> MailTemplate:
        template = self.get_template(template_id)
        if "name" in data and data["name"] != template.name:
            self._ensure_name_free(data["name"], OperationCode.UPDATE)
        values = dict(data)
        if ("subject" in values or "body" in values) and "variables" not in values:
            values["variables"] = extract_variables(values.get("subject", template.subject),
                                                    values.get("body", template.body))
        self.templates.update(template, values, actor_id)
        self.db.commit()
        self.db.refresh(template)
        return template

    def delete_template(self, template_id: UUID, actor_id: Optional[UUID] = None):
        template = self.get_template(template_id)
        self.templates.soft_delete(template, actor_id)
        self.db.commit()

    def clone_template(self, template_id: UUID, name: Optional[str] = None,
                       actor_id: Optional[UUID] = None) -> MailTemplate:
        source = self.get_template(template_id)
        new_name = name or self._copy_name(source.name)
        self._ensure_name_free(new_name)
        clone = self.templates.create(
            name=new_name,
            type=source.type,
            subject=source.subject,
            body=source.body,
            variables=list(source.variables or []),
            is_active=False,
            language=source.language,
            description=source.description,
            created_by=actor_id,
            updated_by=actor_id,
        )
        self.db.commit()
        self.db.refresh(clone)
        logger.info(f"Cloned mail template {source.name} as {clone.name}")
        return clone

    def bulk_update_status(self, template_ids: List[UUID], is_active: bool) -> int:
        templates = self.templates.query().filter(MailTemplate.id.in_(template_ids)).all()
        for template in templates:
            template.is_active = is_active
        self.db.commit()
        return len(templates)

    def process(self, template: MailTemplate, variables: Dict[str, Any]) -> Dict[str, Any]:
        """Render subject and body; inactive templates are rejected"""
        if not template.is_active:
            raise AppError.business(ModuleCode.EMAIL, f"Mail template '{template.name}' is inactive",
                                    OperationCode.PROCESS)
        subject, missing_subject = render(template.subject, variables)
        body, missing_body = render(template.body, variables)
        missing = missing_subject + [name for name in missing_body if name not in missing_subject]
        if missing:
            logger.warning(f"Template {template.name} rendered with missing variables: {', '.join(missing)}")
        return {"subject": subject, "body": body, "missing_variables": missing}

    def _ensure_name_free(self, name: str, operation: OperationCode = OperationCode.CREATE):
        if self.db.query(MailTemplate).filter(MailTemplate.name == name).first():
            raise AppError.conflict(ModuleCode.EMAIL, f"Mail template '{name}' already exists", operation)

    def _copy_name(self, name: str) -> str:
        candidate = f"{name} (copy)"
        index = 2
        while self.db.query(MailTemplate).filter(MailTemplate.name == candidate).first():
            candidate = f"{name} (copy {index})"
            index += 1
        return candidate


class MailProviderService:

    def __init__(self, db: Session):
        self.db = db
        self.providers = BaseRepository(db, MailProvider)

    def list_providers(self, page: int = 1, limit: int = 20,
                       is_active: Optional[bool] = None) -> Tuple[List[MailProvider], int]:
        query = self.providers.query()
        if is_active is not None:
            query = query.filter(MailProvider.is_active.is_(is_active))
        return self.providers.paginate(query.order_by(MailProvider.name), page, limit)

    def get_provider(self, provider_id: UUID) -> MailProvider:
        provider = self.providers.find_by_id(provider_id)
        if not provider:
            raise AppError.not_found(ModuleCode.EMAIL_CHANNEL, "Mail provider", provider_id)
        return provider

    def get_default(self) -> Optional[MailProvider]:
        return self.db.query(MailProvider).filter(
            MailProvider.is_default.is_(True),
            MailProvider.is_active.is_(True),
        ).first()

    def create_provider(self, data: Dict[str, Any]) -> MailProvider:
        if self.providers.exists(name=data["name"]):
            raise AppError.conflict(ModuleCode.EMAIL_CHANNEL, f"Mail provider '{data['name']}' already exists")
        values = dict(data)
        if not self.db.query(MailProvider).count():
            values["is_default"] = True
        if values.get("is_default"):
            self._clear_default()
        provider = self.providers.create(**values)
        self.db.commit()
        self.db.refresh(provider)
        return provider

    def update_provider(self, provider_id: UUID, data: Dict[str, Any]) -> MailProvider:
        provider = self.get_provider(provider_id)
        if "name" in data and data["name"] != provider.name and self.providers.exists(name=data["name"]):
            raise AppError.conflict(ModuleCode.EMAIL_CHANNEL, f"Mail provider '{data['name']}' already exists",
                                    OperationCode.UPDATE)
        if data.get("is_default"):
            self._clear_default(exclude=provider.id)
        self.providers.update(provider, data)
        self.db.commit()
        self.db.refresh(provider)
        return provider

    def set_default(self, provider_id: UUID) -> MailProvider:
        return self.update_provider(provider_id, {"is_default": True})

    def delete_provider(self, provider_id: UUID):
        provider = self.get_provider(provider_id)
        if provider.is_default:
            raise AppError.business(ModuleCode.EMAIL_CHANNEL, "The default mail provider cannot be deleted",
                                    OperationCode.DELETE)
        self.providers.soft_delete(provider)
        self.db.commit()

    def _clear_default(self, exclude: Optional[UUID] = None):
        query = self.db.query(MailProvider).filter(MailProvider.is_default.is_(True))
        if exclude:
            query = query.filter(MailProvider.id != exclude)
        for provider in query.all():
            provider.is_default = False
