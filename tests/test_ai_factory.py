import os
import unittest
from unittest.mock import patch

os.environ.setdefault("ANALYTICS_ENABLED", "0")

from app.ai.config import load_ai_config
from app.ai.factory import get_ai_client
from app.ai.providers.claude_provider import ClaudeProvider
from app.api.deps import get_analyzer
from app.core.errors import AnalysisFailed


class AIFactoryTests(unittest.TestCase):
    def test_default_provider_is_claude(self):
        with patch.dict(os.environ, {}, clear=True):
            cfg = load_ai_config()
        self.assertEqual(cfg.provider, "claude")
        self.assertEqual(cfg.model, "claude-3-5-sonnet-latest")

    def test_model_override(self):
        with patch.dict(os.environ, {"AI_PROVIDER": "openai", "AI_MODEL": "gpt-4o"}, clear=True):
            self.assertEqual(load_ai_config().model, "gpt-4o")

    def test_claude_client(self):
        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "test-key"}, clear=True):
            client = get_ai_client()
        self.assertIsInstance(client, ClaudeProvider)

    def test_unknown_provider(self):
        with patch.dict(os.environ, {"AI_PROVIDER": "llama"}, clear=True):
            with self.assertRaises(ValueError):
                get_ai_client()

    def test_missing_key_surfaces_as_analysis_failure(self):
        with patch.dict(os.environ, {"AI_PROVIDER": "openai"}, clear=True):
            with self.assertRaises(AnalysisFailed):
                get_analyzer()


if __name__ == "__main__":
    unittest.main()
