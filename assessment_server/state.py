"""
Application state

Shared resources are built once at startup into a Services container and
attached to app.state. Routers reach them through the dependency getters
below instead of module globals.
"""
import random
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Callable, Optional

from fastapi import Request

from assessment_server.config import Settings
from assessment_server.core.groups import GroupRegistry
from assessment_server.core.persistence import InMemoryGateway, JsonFileGateway, PersistenceGateway
from assessment_server.core.store import DataStore
from assessment_server.services.assessment_store import AssessmentStore
from assessment_server.services.notifications import EmailNotificationGateway, NotificationDispatcher
from assessment_server.services.team_catalog import TeamCatalog


@dataclass
class Services:
    settings: Settings
    store: DataStore
    groups: GroupRegistry
    teams: TeamCatalog
    assessments: AssessmentStore
    mailer: EmailNotificationGateway
    notifier: NotificationDispatcher

    def close(self) -> None:
        self.notifier.shutdown(wait=False)


def make_gateway(settings: Settings) -> PersistenceGateway:
    if settings.storage == "memory":
        return InMemoryGateway()
    return JsonFileGateway(settings.data_dir)


def build_services(
    settings: Settings,
    gateway: Optional[PersistenceGateway] = None,
    transport: Optional[Callable[[EmailMessage], None]] = None,
    inline_notifications: bool = False,
    rng: Optional[random.Random] = None,
) -> Services:
    """
    Wire the store, registries and notification pipeline together

    Args:
        settings: Runtime settings
        gateway: Persistence backend (defaults from settings.storage)
        transport: Email transport override (tests pass a recorder)
        inline_notifications: Send synchronously instead of on the pool
        rng: Random source for PIN generation
    """
    store = DataStore.open(gateway or make_gateway(settings))
    groups = GroupRegistry(store)
    mailer = EmailNotificationGateway(settings, groups.recipient_for, transport=transport)
    notifier = NotificationDispatcher(
        mailer,
        max_workers=settings.notification_workers,
        max_pending=settings.notification_max_pending,
        inline=inline_notifications,
    )
    return Services(
        settings=settings,
        store=store,
        groups=groups,
        teams=TeamCatalog(store, notifier=notifier, rng=rng),
        assessments=AssessmentStore(
            store,
            notifier=notifier,
            strict_ratings=settings.strict_ratings,
            notify_on_submit=settings.notify_on_submit,
        ),
        mailer=mailer,
        notifier=notifier,
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_settings(request: Request) -> Settings:
    return request.app.state.services.settings


def get_groups(request: Request) -> GroupRegistry:
    return request.app.state.services.groups


def get_team_catalog(request: Request) -> TeamCatalog:
    return request.app.state.services.teams


def get_assessment_store(request: Request) -> AssessmentStore:
    return request.app.state.services.assessments
