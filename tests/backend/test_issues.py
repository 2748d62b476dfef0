"""
HTTP tests for the issue pages: listing, create, read, edit and delete.
"""

from sqlalchemy.orm import selectinload

from core.constants import CONTAINER_ISSUE_POST
from core.models import Attachment, Issue, IssueComment, State

BASE = "/acme/widgets"


def _load(session_factory, issue_id: int) -> Issue | None:
    with session_factory() as s:
        return (
            s.query(Issue)
            .options(
                selectinload(Issue.labels),
                selectinload(Issue.comments),
                selectinload(Issue.assignee),
            )
            .filter(Issue.id == issue_id)
            .first()
        )


def _count(session_factory) -> int:
    with session_factory() as s:
        return s.query(Issue).count()


# =============================================================================
# Listing
# =============================================================================


class TestListIssues:
    def test_defaults_to_open_issues(self, client, world, make_issue):
        make_issue(world.project, world.alice, title="Alpha-open")
        make_issue(world.project, world.alice, title="Beta-closed", state=State.CLOSED)

        resp = client.get(f"{BASE}/issues")

        assert resp.status_code == 200
        assert "Alpha-open" in resp.text
        assert "Beta-closed" not in resp.text

    def test_label_and_state_query_params(self, client, world, make_issue):
        make_issue(world.project, world.alice, title="Alpha-A", labels=[world.bug])
        make_issue(
            world.project,
            world.bob,
            title="Bravo-B",
            state=State.CLOSED,
            labels=[world.bug, world.urgent],
        )

        both = client.get(f"{BASE}/issues", params={"state": "all", "labelIds": [str(world.bug.id)]})
        assert "Alpha-A" in both.text and "Bravo-B" in both.text

        anded = client.get(
            f"{BASE}/issues",
            params={"state": "all", "labelIds": [str(world.bug.id), str(world.urgent.id)]},
        )
        assert "Alpha-A" not in anded.text and "Bravo-B" in anded.text

        closed = client.get(
            f"{BASE}/issues", params={"state": "closed", "labelIds": str(world.urgent.id)}
        )
        assert "Bravo-B" in closed.text

        nobody = client.get(f"{BASE}/issues", params={"state": "all", "authorLoginId": "nomatch"})
        assert nobody.status_code == 200
        assert "Alpha-A" not in nobody.text and "Bravo-B" not in nobody.text
        assert "No issues." in nobody.text

    def test_malformed_label_id_keeps_valid_label_filter(self, client, world, make_issue):
        make_issue(world.project, world.alice, title="Labelled-A", labels=[world.bug])
        make_issue(world.project, world.alice, title="Plain-P")

        resp = client.get(
            f"{BASE}/issues",
            params={"state": "all", "labelIds": [str(world.bug.id), "x", "²"]},
        )

        assert resp.status_code == 200
        assert "Labelled-A" in resp.text
        assert "Plain-P" not in resp.text

    def test_blank_and_malformed_params_are_ignored(self, client, world, make_issue):
        make_issue(world.project, world.alice, title="Only-one")

        resp = client.get(
            f"{BASE}/issues",
            params={"milestoneId": "", "assigneeId": "abc", "labelIds": "", "pageNum": "zero"},
        )

        assert resp.status_code == 200
        assert "Only-one" in resp.text

    def test_pages_are_one_based_and_clamped(self, client, world, make_issue):
        for n in range(1, 18):
            make_issue(world.project, world.alice, title=f"T{n:02d}")

        first = client.get(f"{BASE}/issues")
        assert "T17" in first.text and "T03" in first.text
        assert "T02" not in first.text
        assert "1 / 2" in first.text

        second = client.get(f"{BASE}/issues", params={"pageNum": "2"})
        assert "T02" in second.text and "T01" in second.text
        assert "T17" not in second.text

        clamped = client.get(f"{BASE}/issues", params={"pageNum": "-4"})
        assert "T17" in clamped.text

    def test_sorting_by_title(self, client, world, make_issue):
        for title in ["Mid-M", "Last-Z", "First-A"]:
            make_issue(world.project, world.alice, title=title)

        resp = client.get(f"{BASE}/issues", params={"orderBy": "title", "orderDir": "asc"})

        text = resp.text
        assert text.index("First-A") < text.index("Last-Z") < text.index("Mid-M")

    def test_private_project_is_hidden_from_anonymous(self, client, world, make_issue):
        make_issue(world.private, world.alice, title="Secret-S")

        resp = client.get("/acme/secret/issues")

        assert resp.status_code == 401
        assert "Secret-S" not in resp.text

    def test_private_project_visible_to_member(self, client, login_as, world, make_issue):
        make_issue(world.private, world.alice, title="Secret-S")
        login_as(world.alice)

        resp = client.get("/acme/secret/issues")

        assert resp.status_code == 200
        assert "Secret-S" in resp.text

    def test_unknown_project_is_404(self, client, world):
        resp = client.get("/acme/nothing/issues")

        assert resp.status_code == 404
        assert resp.json()["detail"] == "Project acme/nothing not found"

    def test_unknown_project_shows_not_found_page_to_browsers(self, client, world):
        resp = client.get("/acme/nothing/issues", headers={"Accept": "text/html"})

        assert resp.status_code == 404
        assert resp.headers["content-type"].startswith("text/html")
        assert "<h1>Not found</h1>" in resp.text
        assert "Project acme/nothing not found" in resp.text


# =============================================================================
# Create
# =============================================================================


class TestCreateIssue:
    def test_creates_open_issue_with_project_labels(self, client, login_as, world, session_factory):
        login_as(world.carol)

        resp = client.post(
            f"{BASE}/issues",
            data={
                "title": "Broken build",
                "body": "CI is red",
                "labelIds": [str(world.bug.id), str(world.foreign_label.id)],
            },
            follow_redirects=False,
        )

        assert resp.status_code == 303
        assert resp.headers["location"] == f"{BASE}/issues"
        with session_factory() as s:
            issue = s.query(Issue).filter(Issue.title == "Broken build").one()
            assert issue.state is State.OPEN
            assert issue.author_id == world.carol.id
            assert issue.author_login_id == "carol"
            assert issue.num_of_comments == 0
            assert issue.created_at is not None
            assert [label.id for label in issue.labels] == [world.bug.id]

    def test_blank_title_rerenders_form(self, client, login_as, world, session_factory):
        login_as(world.alice)

        resp = client.post(f"{BASE}/issues", data={"title": "  ", "body": "text"})

        assert resp.status_code == 400
        assert "This field is required" in resp.text
        assert ">text</textarea>" in resp.text
        assert _count(session_factory) == 0

    def test_missing_body_rerenders_form(self, client, login_as, world, session_factory):
        login_as(world.alice)

        resp = client.post(f"{BASE}/issues", data={"title": "Only a title"})

        assert resp.status_code == 400
        assert _count(session_factory) == 0

    def test_anonymous_is_unauthorized(self, client, world, session_factory):
        resp = client.post(f"{BASE}/issues", data={"title": "x", "body": "y"})

        assert resp.status_code == 401
        assert _count(session_factory) == 0

    def test_non_member_cannot_create_in_private_project(
        self, client, login_as, world, session_factory
    ):
        login_as(world.carol)

        resp = client.post("/acme/secret/issues", data={"title": "x", "body": "y"})

        assert resp.status_code == 401
        assert _count(session_factory) == 0

    def test_pending_uploads_are_attached(
        self, client, login_as, world, test_session, session_factory
    ):
        test_session.add(Attachment(name="trace.txt", owner_id=world.bob.id, container_id=world.bob.id))
        test_session.commit()
        login_as(world.bob)

        client.post(f"{BASE}/issues", data={"title": "Crash", "body": "see trace"})

        with session_factory() as s:
            issue = s.query(Issue).filter(Issue.title == "Crash").one()
            attachment = s.query(Attachment).filter(Attachment.name == "trace.txt").one()
            assert attachment.container_type == CONTAINER_ISSUE_POST
            assert attachment.container_id == issue.id

    def test_new_issue_form(self, client, login_as, world):
        assert client.get(f"{BASE}/issueform").status_code == 401

        login_as(world.carol)
        resp = client.get(f"{BASE}/issueform")

        assert resp.status_code == 200
        assert 'name="labelIds"' in resp.text


# =============================================================================
# Read
# =============================================================================


class TestGetIssue:
    def test_detail_page(self, client, world, make_issue):
        issue = make_issue(world.project, world.alice, title="Detail-D", comments=2, labels=[world.bug])

        resp = client.get(f"{BASE}/issue/{issue.id}")

        assert resp.status_code == 200
        assert "Detail-D" in resp.text
        assert "comment 0" in resp.text and "comment 1" in resp.text
        assert "type bug" in resp.text

    def test_renamed_label_shows_current_name(self, client, world, make_issue, test_session):
        issue = make_issue(world.project, world.alice, labels=[world.bug])
        world.bug.name = "defect"
        test_session.commit()

        resp = client.get(f"{BASE}/issue/{issue.id}")

        assert "type defect" in resp.text

    def test_missing_issue_is_not_found_page(self, client, world):
        resp = client.get(f"{BASE}/issue/9999")

        assert resp.status_code == 404
        assert "Not found" in resp.text

    def test_issue_of_another_project_is_not_found(self, client, login_as, world, make_issue):
        issue = make_issue(world.private, world.alice)
        login_as(world.alice)

        resp = client.get(f"{BASE}/issue/{issue.id}")

        assert resp.status_code == 404

    def test_private_issue_is_unauthorized_for_anonymous(self, client, world, make_issue):
        issue = make_issue(world.private, world.alice)

        resp = client.get(f"/acme/secret/issue/{issue.id}")

        assert resp.status_code == 401
        assert "Unauthorized" in resp.text


# =============================================================================
# Update
# =============================================================================


class TestUpdateIssue:
    def _form(self, world, **overrides):
        data = {
            "title": "Renamed",
            "body": "New body",
            "state": "closed",
            "milestoneId": str(world.milestone.id),
            "assigneeId": str(world.bob.id),
            "labelIds": [str(world.urgent.id)],
        }
        data.update(overrides)
        return data

    def test_author_updates_fields_and_labels(
        self, client, login_as, world, make_issue, session_factory
    ):
        issue = make_issue(world.project, world.alice, title="Before", comments=1, labels=[world.bug])
        created_at = issue.created_at
        login_as(world.alice)

        resp = client.post(
            f"{BASE}/issue/{issue.id}/edit", data=self._form(world), follow_redirects=False
        )

        assert resp.status_code == 303
        assert resp.headers["location"] == f"{BASE}/issues"
        stored = _load(session_factory, issue.id)
        assert stored.title == "Renamed"
        assert stored.body == "New body"
        assert stored.state is State.CLOSED
        assert stored.milestone_id == world.milestone.id
        assert stored.assignee.user_id == world.bob.id
        assert [label.id for label in stored.labels] == [world.urgent.id]
        assert stored.project_id == world.project.id
        assert stored.author_id == world.alice.id
        assert stored.num_of_comments == 1
        assert stored.created_at.replace(tzinfo=None) == created_at.replace(tzinfo=None)

    def test_reopen_and_clear_references(self, client, login_as, world, make_issue, session_factory):
        issue = make_issue(
            world.project,
            world.alice,
            state=State.CLOSED,
            assignee=world.bob,
            milestone=world.milestone,
            labels=[world.bug],
        )
        login_as(world.alice)

        client.post(
            f"{BASE}/issue/{issue.id}/edit",
            data=self._form(world, state="open", milestoneId="", assigneeId="", labelIds=[]),
        )

        stored = _load(session_factory, issue.id)
        assert stored.state is State.OPEN
        assert stored.milestone_id is None
        assert stored.assignee_id is None
        assert stored.labels == []

    def test_member_may_edit_others_issue(self, client, login_as, world, make_issue, session_factory):
        issue = make_issue(world.project, world.alice)
        login_as(world.bob)

        resp = client.post(f"{BASE}/issue/{issue.id}/edit", data=self._form(world), follow_redirects=False)

        assert resp.status_code == 303
        assert _load(session_factory, issue.id).title == "Renamed"

    def test_non_member_is_unauthorized(self, client, login_as, world, make_issue, session_factory):
        issue = make_issue(world.project, world.alice, title="Untouched")
        login_as(world.carol)

        resp = client.post(f"{BASE}/issue/{issue.id}/edit", data=self._form(world))

        assert resp.status_code == 401
        assert _load(session_factory, issue.id).title == "Untouched"

    def test_blank_title_rerenders_edit_form(
        self, client, login_as, world, make_issue, session_factory
    ):
        issue = make_issue(world.project, world.alice, title="Untouched")
        login_as(world.alice)

        resp = client.post(f"{BASE}/issue/{issue.id}/edit", data=self._form(world, title=""))

        assert resp.status_code == 400
        assert "This field is required" in resp.text
        assert _load(session_factory, issue.id).title == "Untouched"

    def test_unknown_milestone_rerenders_edit_form(
        self, client, login_as, world, make_issue, session_factory
    ):
        issue = make_issue(world.project, world.alice, title="Untouched")
        login_as(world.alice)

        resp = client.post(
            f"{BASE}/issue/{issue.id}/edit", data=self._form(world, milestoneId="9999")
        )

        assert resp.status_code == 400
        assert "Unknown milestone" in resp.text
        stored = _load(session_factory, issue.id)
        assert stored.title == "Untouched"
        assert stored.assignee_id is None

    def test_missing_issue_is_not_found(self, client, login_as, world):
        login_as(world.alice)

        resp = client.post(f"{BASE}/issue/9999/edit", data=self._form(world))

        assert resp.status_code == 404

    def test_edit_form(self, client, login_as, world, make_issue):
        issue = make_issue(world.project, world.alice, title="Editable-E")

        assert client.get(f"{BASE}/issue/{issue.id}/editform").status_code == 401
        login_as(world.alice)
        resp = client.get(f"{BASE}/issue/{issue.id}/editform")
        assert resp.status_code == 200
        assert "Editable-E" in resp.text
        assert client.get(f"{BASE}/issue/9999/editform").status_code == 404


# =============================================================================
# Delete
# =============================================================================


class TestDeleteIssue:
    def test_author_deletes_issue_and_comments(
        self, client, login_as, world, make_issue, session_factory
    ):
        issue = make_issue(world.project, world.alice, comments=2, labels=[world.bug])
        issue_id = issue.id
        login_as(world.alice)

        resp = client.post(f"{BASE}/issue/{issue_id}/delete", follow_redirects=False)

        assert resp.status_code == 303
        assert resp.headers["location"] == f"{BASE}/issues"
        assert _load(session_factory, issue_id) is None
        with session_factory() as s:
            assert s.query(IssueComment).filter(IssueComment.issue_id == issue_id).count() == 0

    def test_manager_may_delete(self, client, login_as, world, make_issue, session_factory):
        issue = make_issue(world.project, world.alice)
        login_as(world.mallory)

        client.post(f"{BASE}/issue/{issue.id}/delete")

        assert _load(session_factory, issue.id) is None

    def test_member_cannot_delete_others_issue(
        self, client, login_as, world, make_issue, session_factory
    ):
        issue = make_issue(world.project, world.alice)
        login_as(world.bob)

        resp = client.post(f"{BASE}/issue/{issue.id}/delete")

        assert resp.status_code == 401
        assert _load(session_factory, issue.id) is not None

    def test_missing_issue_is_not_found(self, client, login_as, world):
        login_as(world.alice)

        assert client.post(f"{BASE}/issue/9999/delete").status_code == 404
