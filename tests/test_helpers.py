import json
import unittest
from datetime import date

from fastapi import HTTPException

from app.appointments.routes import dump_notes, parse_notes
from app.services.mailer import message_reply_email, password_reset_email
from app.services.media import resource_kind
from app.services.reports import fix_arabic_label, format_date
from app.utils import validate_id


class ArabicLabelTestCase(unittest.TestCase):
    def test_multi_word_arabic_is_reversed(self):
        self.assertEqual(fix_arabic_label("تقرير الجلسة"), "الجلسة تقرير")
        self.assertEqual(fix_arabic_label("  رقم  الملف "), "الملف رقم")

    def test_other_labels_are_untouched(self):
        self.assertEqual(fix_arabic_label("الموقع"), "الموقع")
        self.assertEqual(fix_arabic_label("Case report"), "Case report")
        self.assertEqual(fix_arabic_label(None), "")
        self.assertEqual(fix_arabic_label(42), "42")

    def test_format_date(self):
        self.assertEqual(format_date(date(2025, 3, 9)), "09/03/2025")
        self.assertEqual(format_date(None), "غير متوفر")


class NotesTestCase(unittest.TestCase):
    def test_round_trip_keeps_arabic(self):
        raw = dump_notes("ملاحظة", "المكتب")
        self.assertIn("ملاحظة", raw)
        self.assertEqual(parse_notes(raw), {"notes": "ملاحظة", "location": "المكتب"})

    def test_defaults_and_legacy_text(self):
        self.assertEqual(parse_notes(None), {"notes": "", "location": "غير محدد"})
        self.assertEqual(parse_notes("plain text"), {"notes": "plain text", "location": "plain text"})
        self.assertEqual(parse_notes(json.dumps({"notes": "x"}))["location"], "غير محدد")


class UtilsTestCase(unittest.TestCase):
    def test_validate_id(self):
        value = "0b7c4f8e-3d4a-4c55-9a60-1f7d5b2a9e10"
        self.assertEqual(validate_id(value), value)
        with self.assertRaises(HTTPException) as ctx:
            validate_id("123", "client ID")
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.detail, "Invalid client ID: 123")

    def test_resource_kind(self):
        self.assertEqual(resource_kind("PNG"), "image")
        self.assertEqual(resource_kind("mp4"), "video")
        self.assertEqual(resource_kind("pdf"), "raw")
        self.assertEqual(resource_kind(None), "raw")


class MailTemplateTestCase(unittest.TestCase):
    def test_reset_email_contains_code_and_expiry(self):
        html = password_reset_email("482913", 10)
        self.assertIn("482913", html)
        self.assertIn("10 دقائق", html)
        self.assertIn('dir="rtl"', html)

    def test_reply_email_escapes_content(self):
        html = message_reply_email("Re: <b>", "<script>alert(1)</script>")
        self.assertNotIn("<script>", html)
        self.assertIn("&lt;script&gt;", html)


if __name__ == "__main__":
    unittest.main()
