import json
import unittest
from dataclasses import replace
from types import SimpleNamespace
from unittest.mock import patch

import requests

from commit_wizard.config.schema import OpenAIConfig, WizardConfig
from commit_wizard.llm.openai_client import LLMError, OpenAIClient


class DummyResponse(SimpleNamespace):
    def json(self):
        return json.loads(self.text)


def completion(content):
    return json.dumps({"choices": [{"message": {"role": "assistant", "content": content}}]})


class TestOpenAIClient(unittest.TestCase):
    def test_complete_success(self) -> None:
        captured = {}

        def fake_post(url, *_args, **kwargs):
            captured["url"] = url
            captured.update(kwargs)
            return DummyResponse(status_code=200, text=completion("  feat: add login  \n"))

        with patch("requests.post", fake_post):
            client = OpenAIClient(api_key="sk-test", model="gpt-4o", request_timeout=12.5)
            result = client.complete("prompt", max_tokens=150, temperature=0.7)

        self.assertEqual(result, "feat: add login")
        self.assertEqual(captured["url"], "https://api.openai.com/v1/chat/completions")
        self.assertEqual(captured["json"]["model"], "gpt-4o")
        self.assertEqual(captured["json"]["messages"], [{"role": "user", "content": "prompt"}])
        self.assertEqual(captured["json"]["max_tokens"], 150)
        self.assertEqual(captured["headers"]["Authorization"], "Bearer sk-test")
        self.assertEqual(captured["timeout"], 12.5)

    def test_missing_key_fails_without_request(self) -> None:
        def fake_post(*_args, **_kwargs):
            raise AssertionError("no request expected")

        with patch("requests.post", fake_post):
            with self.assertRaises(LLMError):
                OpenAIClient(api_key=None, model="gpt-4o").complete("p", 10, 0.1)

    def test_error_status_includes_provider_message(self) -> None:
        def fake_post(url, *_args, **kwargs):
            body = json.dumps({"error": {"message": "Rate limit reached"}})
            return DummyResponse(status_code=429, text=body)

        with patch("requests.post", fake_post):
            with self.assertRaises(LLMError) as ctx:
                OpenAIClient(api_key="k", model="m").complete("p", 10, 0.1)
        self.assertIn("429", str(ctx.exception))
        self.assertIn("Rate limit reached", str(ctx.exception))

    def test_error_status_without_json_body(self) -> None:
        def fake_post(url, *_args, **kwargs):
            return DummyResponse(status_code=500, text="Internal error")

        with patch("requests.post", fake_post):
            with self.assertRaises(LLMError) as ctx:
                OpenAIClient(api_key="k", model="m").complete("p", 10, 0.1)
        self.assertIn("unknown error", str(ctx.exception))

    def test_invalid_json(self) -> None:
        def fake_post(url, *_args, **kwargs):
            return DummyResponse(status_code=200, text="not json")

        with patch("requests.post", fake_post):
            with self.assertRaises(LLMError):
                OpenAIClient(api_key="k", model="m").complete("p", 10, 0.1)

    def test_empty_content(self) -> None:
        for body in (completion("   "), json.dumps({"choices": []}), json.dumps({})):
            with self.subTest(body=body):
                with patch("requests.post", lambda *a, **k: DummyResponse(status_code=200, text=body)):
                    with self.assertRaises(LLMError):
                        OpenAIClient(api_key="k", model="m").complete("p", 10, 0.1)

    def test_timeout_and_connection_errors(self) -> None:
        for error in (requests.Timeout("slow"), requests.ConnectionError("refused")):
            with self.subTest(error=error):

                def fake_post(*_args, **_kwargs):
                    raise error

                with patch("requests.post", fake_post):
                    with self.assertRaises(LLMError):
                        OpenAIClient(api_key="k", model="m").complete("p", 10, 0.1)

    def test_from_config(self) -> None:
        config = replace(
            WizardConfig(),
            openai=OpenAIConfig(api_key="sk-x", model="gpt-4o-mini", timeout=5000, base_url="http://proxy/v1/"),
        )
        client = OpenAIClient.from_config(config)
        self.assertEqual(client.model, "gpt-4o-mini")
        self.assertEqual(client.request_timeout, 5.0)
        self.assertEqual(client._endpoint(), "http://proxy/v1/chat/completions")


if __name__ == "__main__":
    unittest.main()
