import json

from vidfed.tags import extract_tags


class TestExtractTags:
    def test_empty(self):
        assert extract_tags(None) == []
        assert extract_tags({}) == []

    def test_comma_separated_values_are_title_cased(self):
        assert extract_tags({"topic": "street food, TRAVEL"}) == ["Street Food", "Travel"]

    def test_json_list_strings(self):
        assert extract_tags({"mood": '["calm", "warm light"]'}) == ["Calm", "Warm Light"]

    def test_json_objects_are_skipped(self):
        assert extract_tags({"raw": '{"a": 1}'}) == []

    def test_excluded_keys_and_unwanted_values(self):
        meta = {
            "source": "upload",
            "analysis": "long text",
            "logo": "Not explicitly visible",
            "setting": "none",
            "scene": "kitchen",
        }
        assert extract_tags(meta) == ["Kitchen"]

    def test_overlong_values_dropped(self):
        assert extract_tags({"note": "x" * 51, "tag": "ok"}) == ["Ok"]

    def test_scalars_and_lists(self):
        assert extract_tags({"year": 2024, "people": ["ana", None, "bo"]}) == ["2024", "Ana", "Bo"]

    def test_brands_come_first(self):
        meta = {
            "topic": "fitness",
            "brand_product_events": json.dumps([{"brand": "Acme"}, {"brand": "Acme"}, {"brand": "Zed"}]),
        }
        assert extract_tags(meta) == ["Acme", "Zed", "Fitness"]

    def test_malformed_brand_events_ignored(self):
        assert extract_tags({"brand_product_events": "not json", "topic": "golf"}) == ["Golf"]

    def test_limit(self):
        meta = {"topic": ", ".join(f"t{i}" for i in range(20))}
        assert len(extract_tags(meta, limit=5)) == 5
