#!/usr/bin/env python3
"""Tests for config.py - DeployConfig and answers file loading."""

import re
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

import pytest
from config import (
    ConfigError,
    DeployConfig,
    generate_api_path,
    get_answers_path,
    is_valid_domain,
    load_answers,
    normalize_api_path,
)


class TestDomainValidation:
    """Test the accepted domain format."""

    @pytest.mark.parametrize('domain', [
        'example.com',
        'sub.example.com',
        'my-host.example.org',
        'a1',
        '192.168.1.10',
    ])
    def test_accepts_valid(self, domain):
        assert is_valid_domain(domain) is True

    @pytest.mark.parametrize('domain', [
        '',
        '-bad.com',
        'bad.com-',
        'example.com.',
        'a',
        'exa mple.com',
        'example_com',
        'https://example.com',
    ])
    def test_rejects_invalid(self, domain):
        assert is_valid_domain(domain) is False


class TestApiPath:
    """Test API path generation and normalization."""

    def test_generated_format(self):
        """Generated path is /api- followed by 32 alphanumerics."""
        api_path = generate_api_path()
        assert re.fullmatch(r'/api-[A-Za-z0-9]{32}', api_path)

    def test_generated_paths_differ(self):
        paths = {generate_api_path() for _ in range(20)}
        assert len(paths) == 20

    def test_adds_leading_slash(self):
        assert normalize_api_path('foo') == '/foo'

    def test_keeps_existing_slash(self):
        assert normalize_api_path('/foo') == '/foo'


class TestDeployConfig:
    """Test DeployConfig derivation and validation."""

    def test_defaults(self):
        config = DeployConfig(domain='example.com')
        assert config.port == 3001
        assert config.api_path.startswith('/api-')
        assert config.data_dir == Path('/root/sub-store-data')
        assert config.container_name == 'sub-store'
        assert config.image == 'xream/sub-store'
        assert config.strict is False

    def test_api_url(self):
        config = DeployConfig(domain='example.com', port=3001, api_path='/api-XYZ')
        assert config.api_url == 'https://example.com/api-XYZ'

    def test_api_path_normalized(self):
        config = DeployConfig(domain='example.com', api_path='foo')
        assert config.api_path == '/foo'
        assert config.api_url == 'https://example.com/foo'

    def test_empty_api_path_generated(self):
        config = DeployConfig(domain='example.com', api_path='')
        assert re.fullmatch(r'/api-[A-Za-z0-9]{32}', config.api_path)

    def test_nginx_paths(self):
        config = DeployConfig(domain='example.com')
        assert config.nginx_conf == Path('/etc/nginx/sites-available/example.com')
        assert config.nginx_link == Path('/etc/nginx/sites-enabled/example.com')

    def test_certificate_paths(self):
        config = DeployConfig(domain='example.com')
        assert config.cert_path == Path('/etc/letsencrypt/live/example.com/fullchain.pem')
        assert config.key_path == Path('/etc/letsencrypt/live/example.com/privkey.pem')

    def test_has_certificate(self, deploy_config, issued_certificate):
        assert deploy_config.has_certificate() is True

    def test_no_certificate(self, deploy_config):
        assert deploy_config.has_certificate() is False

    def test_invalid_domain_raises(self):
        with pytest.raises(ConfigError, match='Invalid domain'):
            DeployConfig(domain='-bad.com')

    @pytest.mark.parametrize('port', [0, 70000, 'abc', True])
    def test_invalid_port_raises(self, port):
        with pytest.raises(ConfigError, match='Invalid port'):
            DeployConfig(domain='example.com', port=port)

    def test_string_paths_converted(self):
        config = DeployConfig(domain='example.com', data_dir='/srv/data')
        assert config.data_dir == Path('/srv/data')


class TestGetAnswersPath:
    """Test answers file discovery."""

    def test_none_when_unset(self, monkeypatch):
        monkeypatch.delenv('SUBSTORE_DEPLOY_CONFIG', raising=False)
        assert get_answers_path() is None

    def test_cli_path_wins(self, tmp_path, monkeypatch):
        cli_file = tmp_path / 'cli.yaml'
        cli_file.write_text('domain: example.com\n')
        env_file = tmp_path / 'env.yaml'
        env_file.write_text('domain: other.com\n')
        monkeypatch.setenv('SUBSTORE_DEPLOY_CONFIG', str(env_file))

        assert get_answers_path(cli_file) == cli_file

    def test_missing_cli_path_raises(self, tmp_path):
        with pytest.raises(ConfigError, match='does not exist'):
            get_answers_path(tmp_path / 'missing.yaml')

    def test_env_var(self, tmp_path, monkeypatch):
        env_file = tmp_path / 'env.yaml'
        env_file.write_text('domain: example.com\n')
        monkeypatch.setenv('SUBSTORE_DEPLOY_CONFIG', str(env_file))

        assert get_answers_path() == env_file

    def test_env_var_missing_file_raises(self, tmp_path, monkeypatch):
        monkeypatch.setenv('SUBSTORE_DEPLOY_CONFIG', str(tmp_path / 'nope.yaml'))
        with pytest.raises(ConfigError, match='SUBSTORE_DEPLOY_CONFIG'):
            get_answers_path()


class TestLoadAnswers:
    """Test answers file parsing and validation."""

    def test_full_file(self, tmp_path):
        path = tmp_path / 'deploy.yaml'
        path.write_text("""
domain: example.com
port: 8080
api_path: secret
email: admin@example.com
issue_certificate: true
strict: false
""")
        answers = load_answers(path)

        assert answers == {
            'domain': 'example.com',
            'port': 8080,
            'api_path': '/secret',
            'email': 'admin@example.com',
            'issue_certificate': True,
            'strict': False,
        }

    def test_partial_file(self, tmp_path):
        path = tmp_path / 'deploy.yaml'
        path.write_text('domain: example.com\n')
        assert load_answers(path) == {'domain': 'example.com'}

    def test_empty_file(self, tmp_path):
        path = tmp_path / 'deploy.yaml'
        path.write_text('')
        assert load_answers(path) == {}

    def test_invalid_domain(self, tmp_path):
        path = tmp_path / 'deploy.yaml'
        path.write_text('domain: -bad.com\n')
        with pytest.raises(ConfigError, match='invalid domain'):
            load_answers(path)

    @pytest.mark.parametrize('content', ['domain:\n', 'domain: ""\n', 'domain: "  "\n'])
    def test_empty_domain_left_for_prompt(self, tmp_path, content):
        path = tmp_path / 'deploy.yaml'
        path.write_text(content)
        assert 'domain' not in load_answers(path)

    def test_non_string_domain(self, tmp_path):
        path = tmp_path / 'deploy.yaml'
        path.write_text('domain: 12345\n')
        with pytest.raises(ConfigError, match='expected a string'):
            load_answers(path)

    def test_boolean_port(self, tmp_path):
        path = tmp_path / 'deploy.yaml'
        path.write_text('port: true\n')
        with pytest.raises(ConfigError, match='invalid port'):
            load_answers(path)

    def test_invalid_port(self, tmp_path):
        path = tmp_path / 'deploy.yaml'
        path.write_text('port: 99999\n')
        with pytest.raises(ConfigError, match='invalid port'):
            load_answers(path)

    def test_unknown_key(self, tmp_path):
        path = tmp_path / 'deploy.yaml'
        path.write_text('domain: example.com\ndata_dir: /tmp\n')
        with pytest.raises(ConfigError, match='unknown keys: data_dir'):
            load_answers(path)

    def test_non_bool_flag(self, tmp_path):
        path = tmp_path / 'deploy.yaml'
        path.write_text('issue_certificate: "yes please"\n')
        with pytest.raises(ConfigError, match='issue_certificate'):
            load_answers(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / 'deploy.yaml'
        path.write_text('- example.com\n')
        with pytest.raises(ConfigError, match='mapping'):
            load_answers(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / 'deploy.yaml'
        path.write_text('domain: [unclosed\n')
        with pytest.raises(ConfigError, match='Invalid YAML'):
            load_answers(path)
