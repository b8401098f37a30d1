from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .database.connection import DBConfig, DatabaseConnection
from .identity.mysql_identity_provider import MySQLIdentityProvider
from .identity.repository import IdentityProvider
from .identity.service import AuthService, MetadataService
from .mail.mysql_mail_repository import MySQLMailRepository
from .mail.repository import MailRepository
from .mail.service import MailService
from .profiles.access_policy import AccessPolicy
from .profiles.mysql_profile_repository import MySQLProfileRepository
from .profiles.mysql_reference_repository import MySQLReferenceRepository
from .profiles.reconciler import ProfileReconciler
from .profiles.repository import ProfileRepository, ReferenceRepository
from .provisioning.service import ProvisioningService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    identities: IdentityProvider
    profiles_repo: ProfileRepository
    references_repo: ReferenceRepository
    mail_repo: MailRepository

    access_policy: AccessPolicy
    auth_service: AuthService
    metadata_service: MetadataService
    profile_reconciler: ProfileReconciler
    provisioning_service: ProvisioningService
    mail_service: MailService


def wire_services(
    *,
    identities: IdentityProvider,
    profiles_repo: ProfileRepository,
    references_repo: ReferenceRepository,
    mail_repo: MailRepository,
    conn: Optional[DatabaseConnection] = None,
    procedure_fallback: bool = False,
    **service_kwargs: Any,
) -> Container:
    """Build every service over the given backends (MySQL in production, fakes in tests)."""
    policy = AccessPolicy()
    return Container(
        conn=conn,
        identities=identities,
        profiles_repo=profiles_repo,
        references_repo=references_repo,
        mail_repo=mail_repo,
        access_policy=policy,
        auth_service=AuthService(identities, profiles_repo, references_repo, **service_kwargs),
        metadata_service=MetadataService(identities, profiles_repo, references_repo, **service_kwargs),
        profile_reconciler=ProfileReconciler(
            profiles_repo, references_repo, policy=policy, procedure_fallback=procedure_fallback
        ),
        provisioning_service=ProvisioningService(
            identities, profiles_repo, references_repo, policy=policy, **service_kwargs
        ),
        mail_service=MailService(mail_repo, profiles_repo, references_repo, **service_kwargs),
    )


def build_container(*, db_config: dict, procedure_fallback: bool = False) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_services(
        identities=MySQLIdentityProvider(conn),
        profiles_repo=MySQLProfileRepository(conn),
        references_repo=MySQLReferenceRepository(conn),
        mail_repo=MySQLMailRepository(conn),
        conn=conn,
        procedure_fallback=procedure_fallback,
    )
