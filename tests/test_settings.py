from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from support import make_settings

from env_loader import load_local_env


class SettingsTest(unittest.TestCase):
    def test_defaults_match_polling_policy(self) -> None:
        settings = make_settings()

        self.assertEqual(settings.run_poll_interval_seconds, 5)
        self.assertEqual(settings.run_poll_max_attempts, 5)
        self.assertEqual(settings.deploy_default_environment, "dev")
        self.assertFalse(settings.notify_run_not_found)
        self.assertFalse(settings.uses_github_app)

    def test_protected_environments_are_split_and_normalized(self) -> None:
        settings = make_settings(DEPLOY_PROTECTED_ENVIRONMENTS=" Prod, production ,,")

        self.assertEqual(settings.protected_environments, ("prod", "production"))


class LoadLocalEnvTest(unittest.TestCase):
    def test_exported_variables_win_over_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            env_file = Path(tmp) / ".env"
            env_file.write_text(
                "# comment\n"
                "DEPLOY_WORKFLOW_ID=release.yml\n"
                "export RUN_POLL_MAX_ATTEMPTS='7'\n"
                "not a pair\n"
            )
            with patch.dict(os.environ, {"DEPLOY_WORKFLOW_ID": "deploy.yml"}, clear=False):
                os.environ.pop("RUN_POLL_MAX_ATTEMPTS", None)
                with self.assertLogs("deploy-bot.env", level="WARNING"):
                    loaded = load_local_env(env_file)

                self.assertEqual(loaded, 1)
                self.assertEqual(os.environ["DEPLOY_WORKFLOW_ID"], "deploy.yml")
                self.assertEqual(os.environ["RUN_POLL_MAX_ATTEMPTS"], "7")

    def test_missing_file_is_ignored(self) -> None:
        self.assertEqual(load_local_env("/nonexistent/.env"), 0)


if __name__ == "__main__":
    unittest.main()
