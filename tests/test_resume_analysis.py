import json
import os
import sys
import unittest
from pathlib import Path

os.environ.setdefault("ANALYTICS_ENABLED", "0")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.errors import AnalysisFailed, ExtractionFailed  # noqa: E402
from app.schemas.resumes import AnalysisContext  # noqa: E402
from app.services.llm_json import json_completion_required, strip_code_fences  # noqa: E402
from app.services.resume_analysis import (  # noqa: E402
    analyze_resume,
    build_resume_prompt,
    save_resume_analysis,
)
from fakes import OWNER_ID, RESUME_ANALYSIS_REPLY, RESUME_ID, FakeAIClient, FakeStore  # noqa: E402


class JsonCompletionTests(unittest.TestCase):
    def test_strip_code_fences(self):
        self.assertEqual(strip_code_fences('```json\n{"a": 1}\n```'), '{"a": 1}')
        self.assertEqual(strip_code_fences('{"a": 1}'), '{"a": 1}')

    def test_system_prompt_goes_first(self):
        client = FakeAIClient({"ok": True})
        json_completion_required(client, user_prompt="hi", system_prompt="be brief", tool_slug="t")
        self.assertEqual([message.role for message in client.calls[0]], ["system", "user"])

    def test_provider_error_becomes_analysis_failure(self):
        client = FakeAIClient(error=RuntimeError("rate limited"))
        with self.assertRaises(AnalysisFailed) as ctx:
            json_completion_required(client, user_prompt="hi", tool_slug="t")
        self.assertIn("rate limited", ctx.exception.details)

    def test_non_object_json_is_rejected(self):
        with self.assertRaises(AnalysisFailed):
            json_completion_required(FakeAIClient("[1, 2]"), user_prompt="hi", tool_slug="t")

    def test_empty_reply_is_rejected(self):
        with self.assertRaises(AnalysisFailed):
            json_completion_required(FakeAIClient("```json\n```"), user_prompt="hi", tool_slug="t")


class ResumeAnalysisTests(unittest.TestCase):
    def test_fenced_reply_is_parsed(self):
        client = FakeAIClient("```json\n" + json.dumps(RESUME_ANALYSIS_REPLY) + "\n```")
        result = analyze_resume(client, "Jane Analyst\nExcel, VBA, DCF")

        self.assertEqual(result.overall_score, 78)
        self.assertEqual(result.impact_statements.score, 70)
        self.assertEqual(result.suggested_edits[0].improved, "Built three-statement models for $200M deals")

    def test_float_scores_are_rounded(self):
        reply = dict(RESUME_ANALYSIS_REPLY, overallScore=82.6)
        self.assertEqual(analyze_resume(FakeAIClient(reply), "text").overall_score, 83)

    def test_unparseable_reply(self):
        with self.assertRaises(AnalysisFailed) as ctx:
            analyze_resume(FakeAIClient("Sure! Here is my analysis."), "text")
        self.assertEqual(ctx.exception.details, "Failed to parse analysis results")

    def test_reply_missing_summary(self):
        reply = {key: value for key, value in RESUME_ANALYSIS_REPLY.items() if key != "summary"}
        with self.assertRaises(AnalysisFailed) as ctx:
            analyze_resume(FakeAIClient(reply), "text")
        self.assertEqual(ctx.exception.details, "Invalid analysis result format")

    def test_out_of_range_score(self):
        reply = dict(RESUME_ANALYSIS_REPLY, overallScore=140)
        with self.assertRaises(AnalysisFailed):
            analyze_resume(FakeAIClient(reply), "text")

    def test_empty_text_skips_the_model(self):
        client = FakeAIClient(RESUME_ANALYSIS_REPLY)
        with self.assertRaises(ExtractionFailed):
            analyze_resume(client, "   ")
        self.assertEqual(client.calls, [])

    def test_prompt_defaults(self):
        prompt = build_resume_prompt("RESUME BODY")
        self.assertIn(
            "for a finance professional position in the finance industry with not specified experience level",
            prompt,
        )
        self.assertTrue(prompt.rstrip().endswith("RESUME BODY"))

    def test_prompt_uses_context(self):
        context = AnalysisContext(job_role="Credit Analyst", industry="banking", experience_level="entry")
        prompt = build_resume_prompt("x", context)
        self.assertIn("for a Credit Analyst position in the banking industry with entry experience level", prompt)

    def test_save_writes_snake_case_row(self):
        store = FakeStore()
        result = analyze_resume(FakeAIClient(RESUME_ANALYSIS_REPLY), "text")
        save_resume_analysis(store, RESUME_ID, OWNER_ID, result)

        table, row = store.inserts[0]
        self.assertEqual(table, "resume_analyses")
        self.assertEqual(row["resume_id"], RESUME_ID)
        self.assertEqual(row["user_id"], OWNER_ID)
        self.assertEqual(row["overall_score"], 78)
        self.assertEqual(row["areas_for_improvement"], ["Quantify deal sizes"])
        self.assertEqual(row["content_quality"]["score"], 80)


if __name__ == "__main__":
    unittest.main()
