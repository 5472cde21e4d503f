"""
Tests for regex contact extraction.
"""

from cv_engine.services.contact import extract_contact, extract_phone


class TestExtractContact:
    """Test email, phone and profile extraction."""

    def test_email_only(self):
        contact = extract_contact("reach me at jane.doe@example.com")
        assert contact.email == "jane.doe@example.com"
        assert contact.phone is None
        assert contact.profile_url is None

    def test_all_fields(self, resume_text):
        contact = extract_contact(resume_text)
        assert contact.email == "jane.doe@example.com"
        assert contact.phone == "+1 (555) 123-4567"
        assert contact.profile_url == "linkedin.com/in/jane-doe"

    def test_empty_text(self):
        contact = extract_contact("")
        assert contact.email is None
        assert contact.phone is None
        assert contact.profile_url is None

    def test_name_is_never_guessed(self, resume_text):
        assert extract_contact(resume_text).name is None


class TestExtractPhone:
    """Test phone heuristics."""

    def test_plain_number(self):
        assert extract_phone("Phone: 555-123-4567") == "555-123-4567"

    def test_year_range_is_not_a_phone(self):
        assert extract_phone("Acme Corp 2019 - 2021") is None

    def test_too_short(self):
        assert extract_phone("Room 12 34") is None

    def test_numeric_date_range_is_not_a_phone(self):
        assert extract_phone("Data Analyst, Initech 05.2019 - 08.2021") is None

    def test_phone_after_date_range(self):
        assert extract_phone("03/2018 - 11/2020\nTel: 555-123-4567") == "555-123-4567"
