import unittest

from services import faq_list
from services.chatbot_service import find_faq, get_answer_by_question
from services.donation_service import add_donation
from tests.support import fresh_engine, make_event, make_user
from utils.db import get_engine


class FaqListTests(unittest.TestCase):
    def test_top_and_other_split(self):
        top = faq_list.get_top_faqs()
        other = faq_list.get_other_faqs()
        self.assertEqual(len(top) + len(other), len(faq_list.FAQS))
        self.assertTrue(all(f.priority for f in top))
        self.assertIn("When is the next event?", [f.question for f in top])

    def test_by_category_skips_top_questions(self):
        events = faq_list.get_faqs_by_category(faq_list.EVENTS)
        self.assertEqual(
            [f.question for f in events],
            ["Where can I find the Events page?", "How do I join a heritage walk?"],
        )

    def test_ids_are_unique(self):
        ids = [f.id for f in faq_list.FAQS]
        self.assertEqual(len(ids), len(set(ids)))


class AnswerTests(unittest.TestCase):
    def test_static_answer(self):
        answer = get_answer_by_question("Can I donate without membership?")
        self.assertTrue(answer.startswith("Yes. Donations are open to everyone."))

    def test_unknown_question(self):
        self.assertIsNone(find_faq("What is the meaning of life?"))
        self.assertEqual(get_answer_by_question("What is the meaning of life?"), faq_list.FALLBACK_ANSWER)

    def test_dynamic_without_db_uses_static_text(self):
        self.assertEqual(
            get_answer_by_question("When is the next event?"),
            find_faq("When is the next event?").answer,
        )

    def test_next_event_from_db(self):
        engine = fresh_engine()
        self.assertIn("no upcoming events", get_answer_by_question("When is the next event?", engine))

        make_event(engine, title="Old Walk", date="2001-01-01")
        make_event(engine, title="Batik Workshop", date="2999-02-01", time="14:00", fee=40)
        answer = get_answer_by_question("When is the next event?", engine)
        self.assertIn("Batik Workshop on 2999-02-01 at 14:00", answer)
        self.assertIn("RM40.00", answer)

    def test_rumah_penghulu_progress(self):
        engine = fresh_engine()
        user = make_user(engine)
        add_donation(engine, user.id, 1500, "card", campaign_id="rumah-penghulu")
        answer = get_answer_by_question("Tell me about Rumah Penghulu", engine)
        self.assertIn("RM1,500 of our RM20,000 goal", answer)

    def test_broken_db_falls_back(self):
        engine = get_engine("sqlite://")  # no tables
        with self.assertLogs("services.chatbot_service", level="ERROR"):
            answer = get_answer_by_question("When is the next event?", engine)
        self.assertEqual(answer, find_faq("When is the next event?").answer)


if __name__ == "__main__":
    unittest.main()
