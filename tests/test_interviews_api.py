import json
import os
import unittest

os.environ.setdefault("ANALYTICS_ENABLED", "0")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")

from fastapi.testclient import TestClient

from app.api.deps import get_analyzer, get_auth_provider, get_store
from app.main import app
from app.services.interview_service import validate_transcript
from fakes import OTHER_USER_ID, OWNER_ID, FakeAIClient, FakeAuth, FakeStore

AUTH = {"Authorization": "Bearer good-token"}

TRANSCRIPT = [
    {"role": "assistant", "content": "Walk me through a DCF."},
    {"role": "user", "content": "You project unlevered free cash flows and discount them at WACC."},
    {"role": "assistant", "content": "How do you pick a terminal growth rate?"},
    {"role": "user", "content": "I anchor it to long-run nominal GDP growth, usually two to three percent."},
]

INTERVIEW_REPLY = {
    "overall_score": 81,
    "technical_score": 84,
    "behavioral_score": None,
    "communication_score": 78,
    "confidence_score": 75.4,
    "analysis_summary": "Technically solid answers delivered with clear structure.",
    "strengths": ["Valuation fundamentals"],
    "areas_for_improvement": ["Give concrete deal examples"],
    "detailed_feedback": {"communication_analysis": "Concise"},
}


def session_row(**overrides):
    row = {
        "id": "sess-1",
        "user_id": OWNER_ID,
        "status": "completed",
        "transcript": TRANSCRIPT,
        "interview_id": "int-1",
    }
    row.update(overrides)
    return row


class TranscriptValidationTests(unittest.TestCase):
    def test_valid_transcript(self):
        self.assertEqual(validate_transcript(TRANSCRIPT), (True, None))

    def test_not_a_list(self):
        self.assertEqual(validate_transcript("hello"), (False, "Transcript must be an array"))

    def test_too_short(self):
        self.assertEqual(validate_transcript(TRANSCRIPT[:2]), (False, "Transcript too short"))

    def test_missing_interviewer(self):
        only_user = [{"role": "user", "content": "A long enough answer."}] * 4
        ok, reason = validate_transcript(only_user)
        self.assertFalse(ok)
        self.assertIn("missing", reason)

    def test_mostly_truncated_answers(self):
        transcript = [
            {"role": "assistant", "content": "Question one?"},
            {"role": "user", "content": "Yes."},
            {"role": "assistant", "content": "Question two?"},
            {"role": "user", "content": "No."},
        ]
        self.assertEqual(validate_transcript(transcript), (False, "Too many short or truncated responses"))


class InterviewsApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        self.store = FakeStore(
            {
                "interview_sessions": [session_row()],
                "interview_analyses": [],
                "generated_interviews": [
                    {"id": "int-1", "role": "Valuation Analyst", "company": "Acme", "status": "ready"}
                ],
            }
        )
        self.ai = FakeAIClient(INTERVIEW_REPLY)
        app.dependency_overrides[get_store] = lambda: self.store
        app.dependency_overrides[get_auth_provider] = lambda: FakeAuth()
        app.dependency_overrides[get_analyzer] = lambda: self.ai

    def tearDown(self):
        app.dependency_overrides.clear()

    def _analyze(self, session_id="sess-1"):
        return self.client.post("/v1/interviews/analyze", json={"session_id": session_id}, headers=AUTH)

    def test_analysis_is_saved_and_interview_marked(self):
        response = self._analyze()
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["session_id"], "sess-1")
        self.assertEqual(body["overall_score"], 81)
        self.assertEqual(body["confidence_score"], 75)
        self.assertIsNone(body["behavioral_score"])

        table, _ = self.store.inserts[0]
        self.assertEqual(table, "interview_analyses")
        self.assertEqual(self.store.row("generated_interviews", "int-1")["status"], "analyzed")
        self.assertIn("Valuation Analyst position at Acme", self.ai.calls[0][-1].content)

    def test_status_update_failure_is_tolerated(self):
        self.store.fail_on.add("update:generated_interviews")
        self.assertEqual(self._analyze().status_code, 200)

    def test_missing_session_id(self):
        self.assertEqual(self._analyze(session_id="").status_code, 400)

    def test_existing_analysis_conflicts(self):
        self.store.tables["interview_analyses"].append({"id": "a-1", "session_id": "sess-1"})
        response = self._analyze()
        self.assertEqual(response.status_code, 409)
        self.assertEqual(self.ai.calls, [])

    def test_unknown_session(self):
        self.assertEqual(self._analyze(session_id="sess-404").status_code, 404)

    def test_other_users_session(self):
        self.store.tables["interview_sessions"] = [session_row(user_id=OTHER_USER_ID)]
        self.assertEqual(self._analyze().status_code, 403)

    def test_incomplete_session(self):
        self.store.tables["interview_sessions"] = [session_row(status="in_progress")]
        response = self._analyze()
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Interview session is not completed")

    def test_invalid_transcript(self):
        self.store.tables["interview_sessions"] = [session_row(transcript=TRANSCRIPT[:2])]
        response = self._analyze()
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Invalid transcript", "code": "invalid_request", "details": "Transcript too short"})

    def test_incomplete_model_output(self):
        self.ai = FakeAIClient({"overall_score": 70})
        response = self._analyze()
        self.assertEqual(response.status_code, 500)
        self.assertIn("communication_score", response.json()["details"])


QUESTIONS = [
    "Walk me through the three financial statements.",
    "Tell me about a time you handled a tight deadline.",
    "What technical approach would you use to value a bank?",
    "How do you prioritise competing requests?",
    "Explain how a change in working capital affects free cash flow.",
    "Describe a disagreement with a senior colleague.",
]


class InterviewGenerationApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)
        cls.payload = {
            "company": "Acme Capital",
            "role": "Valuation Analyst",
            "jobDescription": "Build DCF and comps models.",
            "questionCount": 6,
            "type": "technical",
        }

    def setUp(self):
        self.store = FakeStore({"generated_interviews": []})
        self.ai = FakeAIClient({"questions": QUESTIONS})
        app.dependency_overrides[get_store] = lambda: self.store
        app.dependency_overrides[get_auth_provider] = lambda: FakeAuth()
        app.dependency_overrides[get_analyzer] = lambda: self.ai

    def tearDown(self):
        app.dependency_overrides.clear()

    def _generate(self, **overrides):
        return self.client.post("/v1/interviews/generate", json={**self.payload, **overrides}, headers=AUTH)

    def test_generated_questions_are_tagged_and_saved(self):
        response = self._generate()
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "generated")
        self.assertEqual(body["user_id"], OWNER_ID)
        self.assertEqual(body["question_count"], 6)
        self.assertEqual(
            [question["difficulty"] for question in body["questions"]],
            ["easy", "easy", "medium", "medium", "hard", "hard"],
        )
        self.assertEqual(body["questions"][2]["category"], "technical")
        self.assertEqual(body["questions"][1]["category"], "behavioral")
        self.assertEqual(body["questions"][0]["expectedAnswer"], "")
        self.assertEqual(body["questions"][0]["topic"], "finance")

        table, row = self.store.inserts[0]
        self.assertEqual(table, "generated_interviews")
        self.assertEqual(row["interview_type"], "technical")
        prompt = self.ai.calls[0][-1].content
        self.assertIn("Generate 6 interview questions for a Valuation Analyst position at Acme Capital", prompt)
        self.assertIn("Build DCF and comps models.", prompt)
        self.assertIn("Focus on technical finance concepts", prompt)

    def test_bare_array_reply_is_accepted(self):
        self.ai = FakeAIClient(QUESTIONS[:3])
        body = self._generate(questionCount=3, type="mixed").json()
        self.assertEqual([question["difficulty"] for question in body["questions"]], ["easy", "medium", "hard"])
        self.assertIn("Mix of technical and behavioral questions", self.ai.calls[0][-1].content)

    def test_missing_fields(self):
        response = self._generate(company="")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Missing required fields")
        self.assertEqual(self.ai.calls, [])

    def test_question_count_out_of_range(self):
        self.assertEqual(self._generate(questionCount=50).status_code, 400)

    def test_wrong_number_of_questions(self):
        self.ai = FakeAIClient({"questions": QUESTIONS[:4]})
        response = self._generate()
        self.assertEqual(response.status_code, 500)
        body = response.json()
        self.assertEqual(body["error"], "Failed to parse generated questions")
        self.assertEqual(body["details"], "Expected 6 questions but got 4")
        self.assertEqual(self.store.inserts, [])

    def test_unparseable_reply(self):
        self.ai = FakeAIClient("Here are some questions: 1. ...")
        self.assertEqual(self._generate().status_code, 500)


class InterviewSessionApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        self.store = FakeStore(
            {
                "generated_interviews": [{"id": "int-1", "user_id": OWNER_ID, "status": "generated"}],
                "interview_sessions": [],
                "interview_analyses": [],
            }
        )
        self.ai = FakeAIClient(INTERVIEW_REPLY)
        app.dependency_overrides[get_store] = lambda: self.store
        app.dependency_overrides[get_auth_provider] = lambda: FakeAuth()
        app.dependency_overrides[get_analyzer] = lambda: self.ai

    def tearDown(self):
        app.dependency_overrides.clear()

    def _save(self, **body):
        payload = {"interview_id": "int-1", "status": "completed", "transcript": TRANSCRIPT, **body}
        return self.client.post("/v1/interviews/session", json=payload, headers=AUTH)

    def test_completed_session_is_created(self):
        response = self._save()
        self.assertEqual(response.status_code, 200)
        session = response.json()["session"]
        self.assertEqual(session["status"], "completed")
        self.assertEqual(session["interview_id"], "int-1")
        self.assertEqual(session["user_id"], OWNER_ID)
        self.assertIsNotNone(session["completed_at"])
        self.assertEqual(len(session["transcript"]), 4)
        self.assertEqual(self.store.inserts[0][0], "interview_sessions")

    def test_in_progress_session_has_no_completion_time(self):
        session = self._save(status="in_progress").json()["session"]
        self.assertIsNone(session["completed_at"])

    def test_transcript_may_arrive_as_json_text(self):
        response = self._save(transcript=json.dumps(TRANSCRIPT))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["session"]["transcript"], TRANSCRIPT)

    def test_existing_session_is_updated(self):
        first = self._save(status="in_progress", transcript=TRANSCRIPT[:2]).json()["session"]
        response = self._save(session_id=first["id"])
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["session"]["id"], first["id"])
        self.assertEqual(len(self.store.tables["interview_sessions"]), 1)
        self.assertEqual(self.store.row("interview_sessions", first["id"])["status"], "completed")

    def test_missing_fields_are_listed(self):
        response = self.client.post("/v1/interviews/session", json={"status": "completed"}, headers=AUTH)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Missing required fields: interview_id, transcript")

    def test_unknown_interview(self):
        response = self._save(interview_id="int-404")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Interview not found")

    def test_other_users_interview(self):
        self.store.tables["generated_interviews"] = [{"id": "int-1", "user_id": OTHER_USER_ID}]
        self.assertEqual(self._save().status_code, 403)

    def test_invalid_status(self):
        response = self._save(status="paused")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Invalid status: must be one of in_progress, completed")

    def test_invalid_transcript_message(self):
        response = self._save(transcript=[{"role": "narrator", "content": "Once upon a time"}])
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["error"],
            "Invalid transcript format: must be valid JSON array of messages",
        )
        self.assertEqual(self.store.inserts, [])

    def test_generate_then_session_then_analyze(self):
        self.ai = FakeAIClient({"questions": QUESTIONS[:3]})
        interview = self.client.post(
            "/v1/interviews/generate",
            json={"company": "Acme", "role": "Analyst", "questionCount": 3, "type": "behavioral"},
            headers=AUTH,
        ).json()
        session = self._save(interview_id=interview["id"]).json()["session"]

        self.ai = FakeAIClient(INTERVIEW_REPLY)
        response = self.client.post("/v1/interviews/analyze", json={"session_id": session["id"]}, headers=AUTH)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.store.row("generated_interviews", interview["id"])["status"], "analyzed")


if __name__ == "__main__":
    unittest.main()
