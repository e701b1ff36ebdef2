#!/usr/bin/env python3
"""Tests for interactive configuration prompts."""

import re
import sys
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

import pytest
from prompts import (
    ask_certificate,
    collect_config,
    confirm,
    format_config,
    prompt_api_path,
    prompt_domain,
    prompt_port,
)


class TestConfirm:
    """Test y/N confirmation."""

    @pytest.mark.parametrize('answer', ['y', 'Y', ' y '])
    def test_yes(self, answer):
        with patch('builtins.input', return_value=answer):
            assert confirm('Continue?') is True

    @pytest.mark.parametrize('answer', ['', 'n', 'N', 'yes', 'no', 'x'])
    def test_everything_else_is_no(self, answer):
        with patch('builtins.input', return_value=answer):
            assert confirm('Continue?') is False


class TestPromptDomain:
    """Test domain prompt re-prompting."""

    def test_accepts_valid_domain(self):
        with patch('builtins.input', return_value='example.com'):
            assert prompt_domain() == 'example.com'

    def test_reprompts_until_valid(self, capsys):
        with patch('builtins.input', side_effect=['', '-bad.com', 'bad_domain', 'example.com']) as mock_input:
            assert prompt_domain() == 'example.com'

        assert mock_input.call_count == 4
        assert capsys.readouterr().out.count('valid domain') == 3


class TestPromptPort:
    """Test port prompt."""

    def test_empty_is_default(self):
        with patch('builtins.input', return_value=''):
            assert prompt_port() == 3001

    def test_custom_port(self):
        with patch('builtins.input', return_value='8080'):
            assert prompt_port() == 8080

    def test_reprompts_on_invalid(self):
        with patch('builtins.input', side_effect=['abc', '0', '65536', '9000']) as mock_input:
            assert prompt_port() == 9000
        assert mock_input.call_count == 4


class TestPromptApiPath:
    """Test API path prompt."""

    def test_empty_generates(self):
        with patch('builtins.input', return_value=''):
            api_path = prompt_api_path()
        assert re.fullmatch(r'/api-[A-Za-z0-9]{32}', api_path)

    def test_missing_slash_added(self):
        with patch('builtins.input', return_value='foo'):
            assert prompt_api_path() == '/foo'

    def test_slash_kept(self):
        with patch('builtins.input', return_value='/custom'):
            assert prompt_api_path() == '/custom'


class TestCollectConfig:
    """Test full configuration collection."""

    def test_interactive_confirmed(self):
        with patch('builtins.input', side_effect=['example.com', '', 'mypath', 'y']):
            config = collect_config()

        assert config is not None
        assert config.domain == 'example.com'
        assert config.port == 3001
        assert config.api_path == '/mypath'
        assert config.api_url == 'https://example.com/mypath'

    def test_empty_confirmation_cancels(self):
        """The default answer at the confirmation prompt is no."""
        with patch('builtins.input', side_effect=['example.com', '', '', '']):
            assert collect_config() is None

    def test_answers_skip_prompts(self):
        answers = {'domain': 'example.com', 'port': 8080, 'api_path': '/api-XYZ'}
        with patch('builtins.input', side_effect=['y']) as mock_input:
            config = collect_config(answers)

        assert mock_input.call_count == 1
        assert config.port == 8080
        assert config.api_url == 'https://example.com/api-XYZ'

    def test_assume_yes_skips_confirmation(self):
        answers = {'domain': 'example.com', 'port': 3001, 'api_path': '/p'}
        with patch('builtins.input') as mock_input:
            config = collect_config(answers, assume_yes=True)

        mock_input.assert_not_called()
        assert config.domain == 'example.com'

    def test_answers_strict_and_email(self):
        answers = {'domain': 'example.com', 'port': 3001, 'api_path': '/p',
                   'email': 'ops@example.com', 'strict': True}
        config = collect_config(answers, assume_yes=True)

        assert config.strict is True
        assert config.email == 'ops@example.com'

    def test_override_wins_over_answers(self, tmp_path):
        answers = {'domain': 'example.com', 'port': 3001, 'api_path': '/p', 'strict': False}
        config = collect_config(answers, assume_yes=True, strict=True, data_dir=tmp_path)

        assert config.strict is True
        assert config.data_dir == tmp_path

    def test_prints_configuration(self, capsys):
        answers = {'domain': 'example.com', 'port': 3001, 'api_path': '/api-XYZ'}
        collect_config(answers, assume_yes=True)

        out = capsys.readouterr().out
        assert 'example.com' in out
        assert 'https://example.com/api-XYZ' in out
        assert '/root/sub-store-data' in out


class TestFormatConfig:
    """Test configuration echo."""

    def test_lists_all_fields(self, deploy_config):
        text = format_config(deploy_config)
        assert 'example.com' in text
        assert '3001' in text
        assert '/api-TESTPATH' in text
        assert 'https://example.com/api-TESTPATH' in text
        assert str(deploy_config.data_dir) in text


class TestAskCertificate:
    """Test certificate confirmation."""

    def test_default_is_no(self, deploy_config):
        with patch('builtins.input', return_value='') as mock_input:
            assert ask_certificate(deploy_config) == (False, '')
        assert mock_input.call_count == 1

    def test_yes_with_email(self, deploy_config):
        with patch('builtins.input', side_effect=['y', 'admin@example.com']):
            assert ask_certificate(deploy_config) == (True, 'admin@example.com')

    def test_yes_without_email(self, deploy_config):
        with patch('builtins.input', side_effect=['y', '']):
            assert ask_certificate(deploy_config) == (True, '')

    def test_configured_email_not_prompted(self, deploy_config):
        deploy_config.email = 'ops@example.com'
        with patch('builtins.input', side_effect=['y']) as mock_input:
            assert ask_certificate(deploy_config) == (True, 'ops@example.com')
        assert mock_input.call_count == 1
