"""
Email notifications

The gateway composes and sends one email per event kind. The dispatcher
runs sends on a bounded thread pool so request handlers never wait on SMTP
and never see a send failure.
"""
import logging
import smtplib
import ssl
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from email.message import EmailMessage
from typing import Callable, Dict, List, Optional

from assessment_server.config import Settings, SmtpSettings
from assessment_server.models import Assessment, Team
from assessment_server.utils import round_half_up


logger = logging.getLogger(__name__)

ASSESSMENT_SUBMITTED = "assessment-submitted"
JUDGE_COMPLETE = "judge-complete"
TEAM_PIN_ISSUED = "team-pin-issued"

NOTIFICATION_KINDS = (ASSESSMENT_SUBMITTED, JUDGE_COMPLETE, TEAM_PIN_ISSUED)


class NotificationError(Exception):
    """Raised by a transport that cannot deliver a message"""


class SmtpTransport:
    """Deliver messages over SMTP (implicit TLS or STARTTLS)"""

    def __init__(self, settings: SmtpSettings):
        self.settings = settings

    def __call__(self, message: EmailMessage) -> None:
        s = self.settings
        if not s.host:
            raise NotificationError("SMTP host not configured")

        if s.use_ssl:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(s.host, s.port, context=context, timeout=s.timeout) as server:
                if s.username and s.password:
                    server.login(s.username, s.password)
                server.send_message(message)
        else:
            with smtplib.SMTP(s.host, s.port, timeout=s.timeout) as server:
                server.starttls(context=ssl.create_default_context())
                if s.username and s.password:
                    server.login(s.username, s.password)
                server.send_message(message)


class NotificationGateway(ABC):
    @abstractmethod
    def send(self, kind: str, payload: Dict) -> bool:
        """Compose and deliver one notification; True on success"""


def _ratings_lines(assessment: Assessment) -> List[str]:
    r = assessment.ratings
    return [
        f"  System Complexity Understanding: {r.complexity}/5",
        f"  Clear Storytelling: {r.storytelling}/5",
        f"  Systems-Oriented Action Plan: {r.action_plan}/5",
        f"  Overall Assessment: {r.overall}/5",
    ]


def _comment_lines(assessment: Assessment) -> List[str]:
    c = assessment.comments
    labelled = [
        ("Complexity", c.complexity), ("Storytelling", c.storytelling),
        ("Action Plan", c.action_plan), ("Overall", c.overall),
    ]
    lines = [f"  {label}: {text}" for label, text in labelled if text]
    return lines or ["  No additional comments provided by the judge."]


class EmailNotificationGateway(NotificationGateway):
    """
    Email gateway

    Args:
        settings: Runtime settings (sender, SMTP, public URL)
        group_recipient: Maps a group name to its notification address or None
        transport: Callable delivering an EmailMessage (defaults to SMTP)
    """

    def __init__(self, settings: Settings,
                 group_recipient: Callable[[str], Optional[str]],
                 transport: Optional[Callable[[EmailMessage], None]] = None):
        self.settings = settings
        self.group_recipient = group_recipient
        self.transport = transport or SmtpTransport(settings.smtp)

    def _message(self, to: List[str], subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.settings.smtp.username or self.settings.smtp.sender
        message["To"] = ", ".join(to)
        message.set_content(body)
        return message

    def deliver(self, message: EmailMessage) -> None:
        """Send immediately; transport errors propagate"""
        self.transport(message)

    def send(self, kind: str, payload: Dict) -> bool:
        try:
            if kind == ASSESSMENT_SUBMITTED:
                message = self.compose_assessment(payload["assessment"])
                missing_ok = True
            elif kind == JUDGE_COMPLETE:
                message = self.compose_completion(payload)
                missing_ok = True
            elif kind == TEAM_PIN_ISSUED:
                message = self.compose_pin(payload["team"], payload["group"])
                missing_ok = False
            else:
                logger.error(f"Unknown notification kind: {kind}")
                return False

            if message is None:
                return missing_ok

            self.deliver(message)
            logger.info(f"📧 {kind} notification sent to {message['To']}")
            return True
        except Exception as e:
            logger.error(f"❌ Error sending {kind} notification: {e}")
            return False

    def compose_assessment(self, assessment: Assessment) -> Optional[EmailMessage]:
        group = assessment.group
        recipient = self.group_recipient(group)
        if not recipient:
            logger.info(f"No email configured for group {group}, skipping notification")
            return None

        lines = [
            "New Team Assessment Received",
            "",
            f"Judge: {assessment.judge_name}",
            f"Team: {assessment.team_name}",
            f"Group/Classroom: {group}",
            f"Overall Score: {assessment.percentage():.1f}%",
            f"Submitted: {assessment.submitted_at}",
            "",
            "Individual Ratings (1-5 Scale)",
            *_ratings_lines(assessment),
            "",
            "Judge Comments",
            *_comment_lines(assessment),
            "",
            f"Admin dashboard: {self.settings.public_base_url}/admin",
            f"Assessment ID: {assessment.id}",
        ]
        subject = f"New Assessment: {assessment.team_name} ({group}) - Judge: {assessment.judge_name}"
        return self._message([recipient], subject, "\n".join(lines))

    def compose_completion(self, payload: Dict) -> Optional[EmailMessage]:
        judge_name = payload["judgeName"]
        group = payload["groupName"]
        assessments: List[Assessment] = payload["assessments"]

        recipient = self.group_recipient(group)
        if not recipient:
            logger.info(f"No email configured for group {group}, skipping completion notification")
            return None

        scores = [(a.team_name, a.percentage(), a) for a in assessments]
        lines = [
            "Judge Assessment Complete",
            "",
            f"Judge: {judge_name}",
            f"Classroom: {group}",
            f"Teams Assessed: {len(assessments)}",
            f"Completed At: {payload.get('completedAt', '')}",
        ]
        if scores:
            values = [score for _, score, _ in scores]
            lines += [
                f"Average Score: {round_half_up(sum(values), len(values), 1):.1f}%",
                f"Highest Score: {max(values):.1f}%",
                f"Lowest Score: {min(values):.1f}%",
                f"Teams Above 80%: {sum(1 for v in values if v >= 80)}",
            ]
        lines += ["", "All Team Scores (overall / complexity / story / action / score)"]
        for team_name, score, a in scores:
            r = a.ratings
            lines.append(
                f"  {team_name}: {r.overall}/5  {r.complexity}/5  {r.storytelling}/5  "
                f"{r.action_plan}/5  {score:.1f}%"
            )
        lines += ["", f"Results dashboard: {self.settings.public_base_url}/admin"]

        subject = f"Judge Complete: {judge_name} finished assessing {group} ({len(assessments)} teams)"
        return self._message([recipient], subject, "\n".join(lines))

    def compose_pin(self, team: Team, group: str) -> Optional[EmailMessage]:
        emails = [m.email.strip() for m in team.members if m.email and m.email.strip()]
        if not emails:
            logger.info(f"No valid email addresses found for team: {team.name}")
            return None

        members = [f"  {m.name} ({m.email})" if m.email else f"  {m.name}" for m in team.members]
        lines = [
            f"Your Team Assessment PIN - {team.name}",
            "",
            f"PIN: {team.pin}",
            f"Group: {group}",
            "",
            "Use this PIN to view your team's results once judges have submitted",
            f"their assessments: {self.settings.public_base_url}/team-results?group={group}",
            "",
            "Team Members:",
            *members,
            "",
            f"Assessment Group: {group} - Team ID: {team.id}",
        ]
        return self._message(emails, f"Your Team Assessment PIN - {team.name}", "\n".join(lines))

    def compose_results_export(self, group: str, csv_content: str, count: int,
                               recipients: List[str], export_date: str) -> EmailMessage:
        body = "\n".join([
            "Team Assessment Results",
            "",
            f"Group: {group}",
            f"Total Assessments: {count}",
            f"Export Date: {export_date}",
            "",
            "The complete assessment results are attached as a CSV file.",
        ])
        message = self._message(
            recipients, f"Team Assessment Results Export - {group} - {export_date[:10]}", body
        )
        message.add_attachment(
            csv_content.encode("utf-8"), maintype="text", subtype="csv",
            filename=f"team-assessments-{group}-{export_date[:10]}.csv",
        )
        return message

    def compose_test(self, to: str, sent_at: str) -> EmailMessage:
        body = "\n".join([
            "Email Test Successful!",
            "",
            "If you're reading this, your email configuration is working correctly.",
            f"From: {self.settings.smtp.username or 'Not configured'}",
            f"To: {to}",
            f"Time: {sent_at}",
        ])
        return self._message([to], "Email Configuration Test - Team Assessment Platform", body)


class NotificationDispatcher:
    """
    Fire-and-forget delivery on a bounded thread pool

    dispatch() never raises and never blocks on the send. When more than
    max_pending sends are queued or running, new ones are dropped with a
    warning. With inline=True sends run synchronously in the caller.
    """

    def __init__(self, gateway: NotificationGateway, max_workers: int = 4,
                 max_pending: int = 100, inline: bool = False):
        self.gateway = gateway
        self.max_pending = max_pending
        self.inline = inline
        self._pending = 0
        self._lock = threading.Lock()
        self._executor = None if inline else ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="notify"
        )

    def dispatch(self, kind: str, payload: Dict) -> bool:
        """Queue a notification; returns False if it was dropped"""
        with self._lock:
            if self._pending >= self.max_pending:
                logger.warning(f"Notification queue full ({self._pending}), dropping {kind}")
                return False
            self._pending += 1

        if self._executor is None:
            self._run(kind, payload)
            return True

        try:
            self._executor.submit(self._run, kind, payload)
        except RuntimeError as e:
            # Executor already shut down
            self._done()
            logger.warning(f"Notification {kind} not sent: {e}")
            return False
        return True

    def _run(self, kind: str, payload: Dict) -> None:
        try:
            if not self.gateway.send(kind, payload):
                logger.info(f"Notification {kind} was not delivered")
        except Exception:
            logger.exception(f"Failed to send {kind} notification")
        finally:
            self._done()

    def _done(self) -> None:
        with self._lock:
            self._pending -= 1

    @property
    def pending(self) -> int:
        return self._pending

    def shutdown(self, wait: bool = False) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait, cancel_futures=not wait)
