"""Tests for the camgate command line."""

import json
from unittest.mock import AsyncMock, patch

import bcrypt
import pytest
import yaml

from camgate.cli import build_servers, check_tls_files, main, parse_args
from camgate.config import CamgateConfig, ServerConfig, TLSConfig
from camgate.errors import StartupError

pytestmark = pytest.mark.usefixtures("restore_root_logging")


def _write_config(tmp_path, **sections) -> str:
    path = tmp_path / "camgate.yaml"
    path.write_text(yaml.dump(sections))
    return str(path)


def _write_passwords(tmp_path) -> str:
    path = tmp_path / "passwords.json"
    hashed = bcrypt.hashpw(b"pw", bcrypt.gensalt(rounds=4)).decode()
    path.write_text(json.dumps({"alex": hashed}))
    return str(path)


class TestParseArgs:
    """Tests for parse_args()."""

    def test_serve_is_default(self):
        args = parse_args(["--config", "x.yaml", "--http-port", "8080"])
        assert args.command == "serve"
        assert str(args.config) == "x.yaml"
        assert args.http_port == 8080
        assert args.https_port is None

    def test_no_arguments(self):
        args = parse_args([])
        assert args.command == "serve"
        assert str(args.config) == "camgate.yaml"

    def test_hash_password(self):
        args = parse_args(["hash-password", "secret", "--rounds", "4"])
        assert args.command == "hash-password"
        assert args.password == "secret"
        assert args.rounds == 4


class TestCheckTLSFiles:
    """Tests for check_tls_files()."""

    def test_skipped_when_https_disabled(self):
        check_tls_files(CamgateConfig(server=ServerConfig(https_port=0)))

    def test_missing_file(self, tmp_path):
        config = CamgateConfig(
            server=ServerConfig(https_port=8443),
            tls=TLSConfig(
                key_file=str(tmp_path / "privkey.pem"),
                cert_file=str(tmp_path / "fullchain.pem"),
                chain_file=str(tmp_path / "chain.pem"),
            ),
        )
        with pytest.raises(StartupError, match="TLS key file not found"):
            check_tls_files(config)

    def test_all_present(self, tmp_path):
        for name in ("privkey.pem", "fullchain.pem", "chain.pem"):
            (tmp_path / name).write_text("pem")
        config = CamgateConfig(
            server=ServerConfig(https_port=8443),
            tls=TLSConfig(
                key_file=str(tmp_path / "privkey.pem"),
                cert_file=str(tmp_path / "fullchain.pem"),
                chain_file=str(tmp_path / "chain.pem"),
            ),
        )
        check_tls_files(config)


class TestBuildServers:
    """Tests for build_servers()."""

    def test_none(self):
        config = CamgateConfig(server=ServerConfig(http_port=0, https_port=0))
        assert build_servers(config, app=object()) == []

    def test_http_only(self):
        config = CamgateConfig(server=ServerConfig(http_port=8080, https_port=0))
        (server,) = build_servers(config, app=object())
        assert server.config.port == 8080
        assert server.config.ssl_certfile is None

    def test_both_share_app(self):
        app = object()
        config = CamgateConfig(
            server=ServerConfig(http_port=8080, https_port=8443),
            tls=TLSConfig(key_file="k.pem", cert_file="c.pem", chain_file="ca.pem"),
        )
        http, https = build_servers(config, app=app)
        assert http.config.app is app and https.config.app is app
        assert https.config.port == 8443
        assert https.config.ssl_keyfile == "k.pem"
        assert https.config.ssl_certfile == "c.pem"
        assert https.config.ssl_ca_certs == "ca.pem"


class TestMain:
    """Tests for main()."""

    def test_hash_password_prints_hash(self, capsys):
        main(["hash-password", "pw", "--rounds", "4"])
        hashed = capsys.readouterr().out.strip()
        assert bcrypt.checkpw(b"pw", hashed.encode())

    def test_hash_password_accepts_long_password(self, capsys):
        main(["hash-password", "x" * 80, "--rounds", "4"])
        hashed = capsys.readouterr().out.strip()
        assert bcrypt.checkpw(b"x" * 72, hashed.encode())

    def test_missing_config_exits_1(self, tmp_path):
        with pytest.raises(SystemExit) as info:
            main(["--config", str(tmp_path / "absent.yaml")])
        assert info.value.code == 1

    def test_missing_credentials_exits_1(self, tmp_path):
        config = _write_config(
            tmp_path,
            server={"http_port": 8080, "https_port": 0},
            auth={"passwords_file": str(tmp_path / "absent.json")},
        )
        with pytest.raises(SystemExit) as info:
            main(["--config", config])
        assert info.value.code == 1

    def test_missing_tls_material_exits_1(self, tmp_path):
        config = _write_config(
            tmp_path,
            server={"http_port": 0, "https_port": 8443},
            auth={"passwords_file": _write_passwords(tmp_path)},
            tls={"key_file": str(tmp_path / "nope.pem")},
        )
        with pytest.raises(SystemExit) as info:
            main(["--config", config])
        assert info.value.code == 1

    def test_no_listeners_returns(self, tmp_path):
        config = _write_config(
            tmp_path,
            server={"http_port": 0, "https_port": 0},
            auth={"passwords_file": _write_passwords(tmp_path)},
        )
        with patch("camgate.cli.serve", new=AsyncMock()) as serve:
            main(["--config", config])
        serve.assert_not_called()

    def test_serve_started(self, tmp_path):
        config = _write_config(
            tmp_path,
            server={"http_port": 8080, "https_port": 0},
            auth={"passwords_file": _write_passwords(tmp_path)},
            storage={"backend": "local", "local": {"root_dir": str(tmp_path)}},
        )
        with patch("camgate.cli.serve", new=AsyncMock()) as serve:
            main(["--config", config, "--log-format", "json"])
        serve.assert_awaited_once()
        (loaded, credentials), _ = serve.call_args
        assert loaded.server.http_port == 8080
        assert loaded.server.log_format == "json"
        assert "alex" in credentials
