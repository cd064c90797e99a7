import uuid
from typing import Mapping, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.leads.models.lead import Lead
from app.features.leads.schemas.lead import EARLY_ACCESS_ANSWER, LeadIn
from app.platform.exceptions import BackendUnavailableError, DuplicateEmailError, ValidationError
from app.platform.logger import get_logger

logger = get_logger(__name__)

MISSING_FIELDS_MESSAGE = "Merci de remplir tous les champs pour accéder aux workflows 🙏"
INVALID_EMAIL_MESSAGE = "Merci de saisir un email valide."
TOO_LONG_MESSAGE = "Une de tes réponses est trop longue, merci de la raccourcir."


def _error_kind(err) -> str:
    if err["loc"] == ("email",) and err["type"] == "value_error":
        return "email"
    return err["type"]


def validate_lead_fields(fields: Mapping[str, Optional[str]]) -> LeadIn:
    """
    Validate the qualification form.
    Missing fields are reported first, then over-long answers, then a malformed email,
    whatever the field order.
    """
    try:
        return LeadIn.model_validate(dict(fields))
    except PydanticValidationError as e:
        kinds = {_error_kind(err) for err in e.errors()}
        if kinds <= {"email"}:
            message = INVALID_EMAIL_MESSAGE
        elif kinds <= {"email", "string_too_long"}:
            message = TOO_LONG_MESSAGE
        else:
            message = MISSING_FIELDS_MESSAGE
        raise ValidationError(message) from e


def generate_access_token() -> str:
    # uuid4 carries 122 random bits; collisions are not re-checked
    return str(uuid.uuid4())


class LeadService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def submit(self, fields: Mapping[str, Optional[str]]) -> str:
        """
        Validate and store a lead, returning its access token.

        The email column is unique: a visitor submitting the form again with the
        same email gets the token issued on the first submission.
        """
        lead_in = validate_lead_fields(fields)
        token = generate_access_token()

        try:
            await self.create_lead(lead_in, token)
        except DuplicateEmailError:
            existing_token = await self.get_token_by_email(lead_in.email)
            if existing_token is None:
                raise BackendUnavailableError()
            logger.info(f"Lead {lead_in.email} already registered, reusing access token")
            return existing_token

        if lead_in.interesse_saas == EARLY_ACCESS_ANSWER:
            logger.info(
                f"EARLY ACCESS LEAD: email={lead_in.email} statut={lead_in.statut} "
                f"ca_mensuel={lead_in.ca_mensuel}"
            )

        logger.info(f"Lead {lead_in.email} created, access token issued")
        return token

    async def create_lead(self, lead_in: LeadIn, token: str) -> Lead:
        lead = Lead(**lead_in.model_dump(), access_token=token)
        self.db.add(lead)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateEmailError() from e
        except SQLAlchemyError as e:
            logger.exception("Failed to store lead", exc_info=e)
            await self.db.rollback()
            raise BackendUnavailableError() from e
        return lead

    async def get_token_by_email(self, email: str) -> Optional[str]:
        try:
            result = await self.db.execute(select(Lead.access_token).where(Lead.email == email))
        except SQLAlchemyError as e:
            raise BackendUnavailableError() from e
        return result.scalars().first()
