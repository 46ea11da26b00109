"""Tests for npm configuration loading."""

import base64

from constants import Constants
from registry.npm.config import (
    NpmConfig,
    env_overrides,
    expand_env,
    load_npm_config,
    nerf_dart,
    parse_npmrc,
)


class TestParseNpmrc:

    def test_basic_pairs_comments_and_sections(self):
        text = """
        # comment
        ; also a comment
        registry = https://registry.example/
        [section]
        strict-ssl=false
        @corp:registry="https://npm.corp.example/"
        """
        values = parse_npmrc(text, env={})
        assert values == {
            "registry": "https://registry.example/",
            "strict-ssl": "false",
            "@corp:registry": "https://npm.corp.example/",
        }

    def test_bare_key_is_true(self):
        assert parse_npmrc("always-auth", env={}) == {"always-auth": "true"}

    def test_env_references_are_expanded(self):
        values = parse_npmrc("//npm.corp.example/:_authToken=${NPM_TOKEN}", env={"NPM_TOKEN": "abc"})
        assert values["//npm.corp.example/:_authToken"] == "abc"

    def test_missing_env_reference_expands_to_empty(self):
        assert expand_env("x${UNSET}y", {}) == "xy"

    def test_escaped_reference_stays_literal(self):
        assert expand_env("\\${HOME}", {"HOME": "/root"}) == "${HOME}"

    def test_array_suffix_is_dropped(self):
        assert parse_npmrc("ca[]=cert", env={}) == {"ca": "cert"}


def test_env_overrides():
    env = {
        "npm_config_registry": "https://env.example/",
        "NPM_CONFIG_HTTPS_PROXY": "http://proxy:8080",
        "npm_config_strict_ssl": "false",
        "PATH": "/bin",
    }
    assert env_overrides(env) == {
        "registry": "https://env.example/",
        "https-proxy": "http://proxy:8080",
        "strict-ssl": "false",
    }


def test_nerf_dart():
    assert nerf_dart("https://registry.npmjs.org/") == "//registry.npmjs.org/"
    assert nerf_dart("https://npm.corp.example/repo/npm/pkg") == "//npm.corp.example/repo/npm/"


class TestNpmConfig:

    def test_defaults(self):
        config = NpmConfig()
        assert config.registry == Constants.REGISTRY_URL_NPM
        assert config.strict_ssl is True
        assert config.proxy_for("https://registry.npmjs.org/x") is None

    def test_registry_gets_trailing_slash(self):
        assert NpmConfig(values={"registry": "https://r.example"}).registry == "https://r.example/"

    def test_scoped_registry(self):
        config = NpmConfig(values={"@corp:registry": "https://npm.corp.example"})
        assert config.registry_for("@corp/tool") == "https://npm.corp.example/"
        assert config.registry_for("@other/tool") == Constants.REGISTRY_URL_NPM
        assert config.registry_for("tool") == Constants.REGISTRY_URL_NPM

    def test_auth_token_matches_path_prefix(self):
        config = NpmConfig(values={"//npm.corp.example/:_authToken": "tok"})
        assert config.auth_header("https://npm.corp.example/repo/npm/") == "Bearer tok"
        assert config.auth_header("https://registry.npmjs.org/") is None

    def test_basic_auth_variants(self):
        password = base64.b64encode(b"pw").decode("ascii")
        config = NpmConfig(values={
            "//a.example/:_auth": "Zm9vOmJhcg==",
            "//b.example/:username": "bob",
            "//b.example/:_password": password,
        })
        assert config.auth_header("https://a.example/") == "Basic Zm9vOmJhcg=="
        expected = base64.b64encode(b"bob:pw").decode("ascii")
        assert config.auth_header("https://b.example/") == f"Basic {expected}"

    def test_legacy_auth_only_for_default_registry(self):
        config = NpmConfig(values={"registry": "https://r.example/", "_auth": "eA=="})
        assert config.auth_header("https://r.example/") == "Basic eA=="
        assert config.auth_header("https://other.example/") is None

    def test_proxy_selection_and_noproxy(self):
        config = NpmConfig(values={
            "proxy": "http://plain:3128",
            "https-proxy": "http://secure:3128",
            "noproxy": "internal.example, .corp.example",
        })
        assert config.proxy_for("https://registry.npmjs.org/x") == "http://secure:3128"
        assert config.proxy_for("http://registry.example/x") == "http://plain:3128"
        assert config.proxy_for("https://internal.example/x") is None
        assert config.proxy_for("https://npm.corp.example/x") is None

    def test_strict_ssl_false(self):
        assert NpmConfig(values={"strict-ssl": "false"}).strict_ssl is False

    def test_with_registry(self):
        config = NpmConfig().with_registry("https://mirror.example")
        assert config.registry == "https://mirror.example/"
        assert NpmConfig().with_registry(None).registry == Constants.REGISTRY_URL_NPM


class TestLoadNpmConfig:

    def test_layering(self, tmp_path):
        home = tmp_path / "home"
        project = tmp_path / "project"
        home.mkdir()
        project.mkdir()
        (home / ".npmrc").write_text("registry=https://user.example/\nstrict-ssl=false\n")
        (project / ".npmrc").write_text("registry=https://project.example/\n")

        config = load_npm_config(cwd=project, env={}, home=home)
        assert config.registry == "https://project.example/"
        assert config.strict_ssl is False

        env = {"npm_config_registry": "https://env.example/"}
        assert load_npm_config(cwd=project, env=env, home=home).registry == "https://env.example/"

    def test_global_and_userconfig_locations(self, tmp_path):
        global_rc = tmp_path / "global.npmrc"
        user_rc = tmp_path / "user.npmrc"
        global_rc.write_text("registry=https://global.example/\nproxy=http://proxy:1\n")
        user_rc.write_text("registry=https://user.example/\n")
        env = {
            "npm_config_globalconfig": str(global_rc),
            "npm_config_userconfig": str(user_rc),
        }

        config = load_npm_config(cwd=tmp_path / "missing", env=env, home=tmp_path)
        assert config.registry == "https://user.example/"
        assert config.values["proxy"] == "http://proxy:1"

    def test_no_files_uses_default(self, tmp_path):
        config = load_npm_config(cwd=tmp_path, env={}, home=tmp_path)
        assert config.registry == Constants.REGISTRY_URL_NPM
