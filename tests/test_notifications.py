"""
Tests for email composition and the notification dispatcher
"""
import threading

from assessment_server.models import Assessment, Comments, Member, Ratings, Team
from assessment_server.services.notifications import (
    ASSESSMENT_SUBMITTED,
    JUDGE_COMPLETE,
    TEAM_PIN_ISSUED,
    NotificationDispatcher,
    NotificationGateway,
)


def make_assessment(group="g", team="Alpha"):
    return Assessment(
        id="a1",
        judge_name="Dr. Smith",
        team_name=team,
        group=group,
        ratings=Ratings(complexity=4, storytelling=4, action_plan=4, overall=4),
        comments=Comments(overall="Strong finish"),
        submitted_at="2025-03-14T09:26:53.589Z",
    )


def with_group_email(services, group="g", email="prof@example.com"):
    services.groups.create(group)
    services.groups.set_email(group, email)


def test_assessment_email_goes_to_group_address(services, transport):
    with_group_email(services)
    assert services.mailer.send(ASSESSMENT_SUBMITTED, {"assessment": make_assessment()}) is True

    message = transport.messages[0]
    assert message["To"] == "prof@example.com"
    assert message["From"] == "bot@example.com"
    assert message["Subject"] == "New Assessment: Alpha (g) - Judge: Dr. Smith"
    body = message.get_content()
    assert "Overall Score: 80.0%" in body
    assert "Overall: Strong finish" in body


def test_assessment_without_group_email_is_skipped(services, transport):
    """No address for the group is a normal outcome, not a failure"""
    assert services.mailer.send(ASSESSMENT_SUBMITTED, {"assessment": make_assessment()}) is True
    assert transport.messages == []


def test_completion_email_summarizes_scores(services, transport):
    with_group_email(services)
    assessments = [make_assessment(team="Alpha"), make_assessment(team="Beta")]
    assessments[1].ratings = Ratings(complexity=2, storytelling=2, action_plan=2, overall=2)

    sent = services.mailer.send(JUDGE_COMPLETE, {
        "judgeName": "Dr. Smith",
        "groupName": "g",
        "assessments": assessments,
        "completedAt": "2025-03-14T10:00:00.000Z",
    })
    assert sent is True
    message = transport.messages[0]
    assert message["Subject"] == "Judge Complete: Dr. Smith finished assessing g (2 teams)"
    body = message.get_content()
    assert "Average Score: 60.0%" in body
    assert "Highest Score: 80.0%" in body
    assert "Teams Above 80%: 1" in body


def test_pin_email_to_trimmed_member_addresses(services, transport):
    team = Team(
        id="t1", name="Alpha", group="g", pin="123456",
        members=[
            Member(name="John", email=" john@example.com "),
            Member(name="Sarah", email="sarah@example.com"),
            Member(name="Alex", email=""),
        ],
    )
    assert services.mailer.send(TEAM_PIN_ISSUED, {"team": team, "group": "g"}) is True
    message = transport.messages[0]
    assert message["To"] == "john@example.com, sarah@example.com"
    assert "PIN: 123456" in message.get_content()


def test_pin_email_without_addresses_reports_not_sent(services, transport):
    team = Team(id="t1", name="Alpha", group="g", pin="123456", members=[Member(name="Alex")])
    assert services.mailer.send(TEAM_PIN_ISSUED, {"team": team, "group": "g"}) is False
    assert transport.messages == []


def test_transport_failure_returns_false(services):
    """Send failures are logged and reported, never raised"""
    with_group_email(services)

    def broken(message):
        raise ConnectionError("smtp down")

    services.mailer.transport = broken
    assert services.mailer.send(ASSESSMENT_SUBMITTED, {"assessment": make_assessment()}) is False


def test_unknown_kind(services):
    assert services.mailer.send("nonsense", {}) is False


def test_results_export_has_csv_attachment(services):
    message = services.mailer.compose_results_export(
        "g", "a,b\n1,2\n", 1, ["program@example.com"], "2025-03-14T10:00:00.000Z"
    )
    assert message["Subject"] == "Team Assessment Results Export - g - 2025-03-14"
    attachments = list(message.iter_attachments())
    assert len(attachments) == 1
    assert attachments[0].get_filename() == "team-assessments-g-2025-03-14.csv"
    assert attachments[0].get_content_type() == "text/csv"


class RecordingGateway(NotificationGateway):
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send(self, kind, payload):
        if self.fail:
            raise RuntimeError("boom")
        self.sent.append((kind, payload))
        return True


class BlockingGateway(NotificationGateway):
    def __init__(self):
        self.release = threading.Event()

    def send(self, kind, payload):
        self.release.wait(timeout=5)
        return True


def test_dispatcher_inline_delivers():
    gateway = RecordingGateway()
    dispatcher = NotificationDispatcher(gateway, inline=True)
    assert dispatcher.dispatch(JUDGE_COMPLETE, {"x": 1}) is True
    assert gateway.sent == [(JUDGE_COMPLETE, {"x": 1})]
    assert dispatcher.pending == 0


def test_dispatcher_swallows_gateway_errors():
    """A raising gateway never reaches the caller"""
    dispatcher = NotificationDispatcher(RecordingGateway(fail=True), inline=True)
    assert dispatcher.dispatch(JUDGE_COMPLETE, {}) is True
    assert dispatcher.pending == 0


def test_dispatcher_pool_delivers():
    gateway = RecordingGateway()
    dispatcher = NotificationDispatcher(gateway, max_workers=2)
    for i in range(5):
        dispatcher.dispatch(ASSESSMENT_SUBMITTED, {"i": i})
    dispatcher.shutdown(wait=True)
    assert sorted(p["i"] for _, p in gateway.sent) == [0, 1, 2, 3, 4]
    assert dispatcher.pending == 0


def test_dispatcher_drops_when_full():
    """Beyond max_pending, new notifications are dropped"""
    gateway = BlockingGateway()
    dispatcher = NotificationDispatcher(gateway, max_workers=1, max_pending=2)
    try:
        assert dispatcher.dispatch(ASSESSMENT_SUBMITTED, {}) is True
        assert dispatcher.dispatch(ASSESSMENT_SUBMITTED, {}) is True
        assert dispatcher.dispatch(ASSESSMENT_SUBMITTED, {}) is False
    finally:
        gateway.release.set()
        dispatcher.shutdown(wait=True)
    assert dispatcher.pending == 0


def test_dispatch_after_shutdown():
    dispatcher = NotificationDispatcher(RecordingGateway(), max_workers=1)
    dispatcher.shutdown(wait=True)
    assert dispatcher.dispatch(ASSESSMENT_SUBMITTED, {}) is False
    assert dispatcher.pending == 0


def test_completion_average_rounds_ties_up(services, transport):
    """Scores 80, 75, 75, 75 average 76.25 → 76.3"""
    with_group_email(services)
    assessments = [make_assessment(team=name) for name in ("A", "B", "C", "D")]
    for a in assessments[1:]:
        a.ratings = Ratings(complexity=4, storytelling=4, action_plan=4, overall=3)

    services.mailer.send(JUDGE_COMPLETE, {
        "judgeName": "Dr. Smith",
        "groupName": "g",
        "assessments": assessments,
    })
    assert "Average Score: 76.3%" in transport.messages[0].get_content()
