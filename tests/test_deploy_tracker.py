from __future__ import annotations

import unittest

from support import FakeClock, FakeGitHubClient, bot_run, dispatch_error, make_settings

from domain import DeploymentStage
from models import CommentEvent
from repositories import InMemoryAuthorRegistry
from services import DeployBot


def comment(body: str, *, author: str = "alice", is_pull_request: bool = True) -> CommentEvent:
    return CommentEvent(
        owner="acme",
        repo="web",
        issue_number=7,
        is_pull_request=is_pull_request,
        body=body,
        author=author,
    )


class DeploymentTrackerTest(unittest.IsolatedAsyncioTestCase):
    def build(self, github: FakeGitHubClient, **settings_overrides) -> None:
        self.github = github
        self.clock = FakeClock()
        self.registry = InMemoryAuthorRegistry()
        bot = DeployBot(make_settings(**settings_overrides), self.registry, github, sleep=self.clock.sleep)
        self.tracker = bot.build_tracker()

    async def test_non_deploy_comment_makes_no_remote_call(self) -> None:
        self.build(FakeGitHubClient())

        for body in ("LGTM", "can we deploy later?", "/deploy"):
            self.assertIsNone(await self.tracker.handle_comment(comment(body)))

        self.assertEqual(self.github.calls, [])

    async def test_comment_on_plain_issue_is_ignored(self) -> None:
        self.build(FakeGitHubClient())

        result = await self.tracker.handle_comment(comment("deploy", is_pull_request=False))

        self.assertIsNone(result)
        self.assertEqual(self.github.calls, [])

    async def test_run_found_on_third_attempt_backfills_link(self) -> None:
        self.build(FakeGitHubClient(runs=[[], [], [bot_run(4242)]]))

        request = await self.tracker.handle_comment(comment("deploy to Staging"))

        assert request is not None
        self.assertEqual(request.stage, DeploymentStage.COMMENT_UPDATED)
        self.assertEqual(request.environment, "staging")
        self.assertEqual(request.branch_ref, "feature-x")
        self.assertEqual(request.commit_sha, "abc123")
        self.assertEqual(request.workflow_run_id, 4242)

        self.assertEqual(len(self.github.calls_named("create_comment")), 1)
        updates = self.github.calls_named("update_comment")
        self.assertEqual(len(updates), 1)
        self.assertEqual(self.clock.sleeps, [5, 5])

        created_body = self.github.calls_named("create_comment")[0][1][3]
        _, (_, _, comment_id, updated_body), _ = updates[0]
        self.assertEqual(comment_id, request.trigger_comment_id)
        self.assertIn("(https://github.com/acme/web/actions)", created_body)
        self.assertIn("https://github.com/acme/web/actions/runs/4242", updated_body)
        self.assertEqual(
            updated_body,
            created_body.replace(
                "https://github.com/acme/web/actions)",
                "https://github.com/acme/web/actions/runs/4242)",
            ),
        )
        self.assertIn("alice started a branch deployment to **staging** (branch: `feature-x`)", updated_body)

    async def test_records_author_before_dispatch(self) -> None:
        self.build(FakeGitHubClient(runs=[[bot_run(1)]]))

        await self.tracker.handle_comment(comment("deploy", author="carol"))

        self.assertEqual(await self.registry.get_author("feature-x"), "carol")
        self.assertEqual(
            self.github.call_names,
            [
                "list_environments",
                "get_pull_request",
                "create_comment",
                "create_workflow_dispatch",
                "list_workflow_runs",
                "update_comment",
            ],
        )

    async def test_run_never_found_stops_after_five_polls(self) -> None:
        self.build(FakeGitHubClient(runs=[[]]))

        request = await self.tracker.handle_comment(comment("deploy"))

        assert request is not None
        self.assertEqual(request.stage, DeploymentStage.RUN_NOT_FOUND)
        self.assertEqual(len(self.github.calls_named("list_workflow_runs")), 5)
        self.assertEqual(self.clock.sleeps, [5] * 5)
        self.assertEqual(self.github.call_names[-1], "list_workflow_runs")
        self.assertEqual(self.github.calls_named("update_comment"), [])
        self.assertEqual(len(self.github.calls_named("create_comment")), 1)

    async def test_run_not_found_notice_when_enabled(self) -> None:
        self.build(FakeGitHubClient(runs=[[]]), NOTIFY_RUN_NOT_FOUND=True)

        request = await self.tracker.handle_comment(comment("deploy"))

        assert request is not None
        self.assertEqual(request.stage, DeploymentStage.RUN_NOT_FOUND)
        bodies = [call[1][3] for call in self.github.calls_named("create_comment")]
        self.assertEqual(len(bodies), 2)
        self.assertIn("Deployment Run Not Found", bodies[1])

    async def test_dispatch_failure_posts_failure_and_keeps_trigger_comment(self) -> None:
        self.build(FakeGitHubClient(dispatch_error=dispatch_error()))

        request = await self.tracker.handle_comment(comment("deploy to dev"))

        assert request is not None
        self.assertEqual(request.stage, DeploymentStage.DISPATCH_FAILED)
        bodies = [call[1][3] for call in self.github.calls_named("create_comment")]
        self.assertEqual(len(bodies), 2)
        self.assertIn("Deployment Triggered", bodies[0])
        self.assertIn("Deployment Failed to Start", bodies[1])
        self.assertIn("alice attempted to deploy branch `feature-x` to **dev**", bodies[1])
        self.assertEqual(self.github.calls_named("list_workflow_runs"), [])
        self.assertEqual(self.github.calls_named("update_comment"), [])

    async def test_prod_is_rejected_even_if_configured(self) -> None:
        self.build(FakeGitHubClient(environments=["dev", "prod"]))

        request = await self.tracker.handle_comment(comment("deploy to prod"))

        assert request is not None
        self.assertEqual(request.stage, DeploymentStage.REJECTED)
        self.assertEqual(self.github.call_names, ["create_comment"])
        self.assertIsNone(await self.registry.get_author("feature-x"))

    async def test_unknown_environment_is_rejected(self) -> None:
        self.build(FakeGitHubClient(environments=["dev", "Staging"]))

        request = await self.tracker.handle_comment(comment("deploy to qa"))

        assert request is not None
        self.assertEqual(request.stage, DeploymentStage.REJECTED)
        self.assertEqual(self.github.call_names, ["list_environments", "create_comment"])
        body = self.github.calls_named("create_comment")[0][1][3]
        self.assertTrue(body.endswith("Available environments: dev, Staging"))

    async def test_stage_machine_refuses_skipping_ahead(self) -> None:
        self.build(FakeGitHubClient())
        request = await self.tracker.handle_comment(comment("deploy to prod"))
        assert request is not None

        with self.assertRaises(RuntimeError):
            request.advance(DeploymentStage.DISPATCHING)


if __name__ == "__main__":
    unittest.main()
