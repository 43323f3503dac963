"""Tests for the n8n stack lifecycle operations."""

import re
import shlex
import stat
from datetime import datetime

import pytest
import yaml

from n8n_manager.core.env_file import EnvFile
from n8n_manager.core.errors import CommandError, PreconditionError, PrerequisiteError
from n8n_manager.stacks import backup_filename


class TestPrerequisites:
    def test_all_present(self, stack):
        stack.check_prerequisites()

    def test_docker_missing(self, stack, fake_runner):
        fake_runner.respond("docker --version", return_code=127)
        with pytest.raises(PrerequisiteError) as exc_info:
            stack.check_prerequisites()
        assert "Docker is not installed" in exc_info.value.message
        assert "get-docker" in exc_info.value.hint

    def test_docker_not_running(self, stack, fake_runner):
        fake_runner.respond("docker info", return_code=1)
        with pytest.raises(PrerequisiteError, match="not running"):
            stack.check_prerequisites()

    def test_compose_missing(self, stack, fake_runner):
        fake_runner.respond("docker compose version", return_code=1)
        fake_runner.respond("docker-compose --version", return_code=127)
        with pytest.raises(PrerequisiteError, match="Compose"):
            stack.check_prerequisites()


class TestScaffolding:
    def test_create_directories(self, stack, project_dir):
        stack.create_directories()

        for relative in ["postgres", "postgres/data", "redis", "redis/data", "n8n"]:
            directory = project_dir / "data" / relative
            assert (directory / ".gitkeep").exists()
            assert stat.S_IMODE(directory.stat().st_mode) == 0o755

    def test_write_missing_files(self, stack, project_dir):
        written = stack.write_missing_files()
        assert sorted(p.name for p in written) == [".env.example", "docker-compose.yml"]
        assert stack.write_missing_files() == []

    def test_existing_files_are_not_replaced(self, stack, project_dir):
        (project_dir / "docker-compose.yml").write_text("services: {}\n")
        stack.write_missing_files()
        assert (project_dir / "docker-compose.yml").read_text() == "services: {}\n"

    def test_template_has_placeholders(self, stack):
        env = EnvFile.parse(stack.generate_env_template())
        assert env.get("POSTGRES_PASSWORD") == "your_secure_postgres_password_here"
        assert env.get("N8N_ENCRYPTION_KEY") == "your_32_character_encryption_key_here"
        assert env.get("WEBHOOK_URL") == "http://localhost:5678"

    def test_compose_topology(self, stack):
        compose = yaml.safe_load(stack.generate_compose())
        services = compose["services"]

        assert set(services) == {"traefik", "postgres", "redis", "n8n", "n8n-worker"}
        assert services["n8n-worker"]["command"] == "worker"
        assert services["n8n-worker"]["environment"]["EXECUTIONS_MODE"] == "queue"
        # Scaled services must not pin container names or host ports
        assert "container_name" not in services["n8n-worker"]
        assert "ports" not in services["n8n-worker"]
        assert services["n8n"]["ports"] == ["5678:5678"]

    def test_info_lists_compose_services(self, stack):
        compose = yaml.safe_load(stack.generate_compose())
        assert set(stack.info.services) == set(compose["services"])


class TestLifecycle:
    def test_start_requires_env(self, stack, fake_runner):
        with pytest.raises(PreconditionError):
            stack.start()
        assert not fake_runner.ran(" up")

    def test_start(self, env_ready, fake_runner):
        env_ready.start()
        assert fake_runner.commands[-1].endswith("up -d")

    def test_failure_raises_command_error(self, env_ready, fake_runner):
        fake_runner.respond(" up -d", return_code=1, stderr="port is already allocated")
        with pytest.raises(CommandError) as exc_info:
            env_ready.start()
        assert exc_info.value.return_code == 1
        assert "port is already allocated" in exc_info.value.message

    def test_update_pulls_then_applies(self, env_ready, fake_runner):
        env_ready.update()
        assert fake_runner.index_of(" pull") < fake_runner.index_of(" up -d")

    def test_update_stops_after_failed_pull(self, env_ready, fake_runner):
        fake_runner.respond(" pull", return_code=1)
        with pytest.raises(CommandError):
            env_ready.update()
        assert not fake_runner.ran(" up -d")

    def test_scale_without_value(self, env_ready, fake_runner):
        with pytest.raises(PreconditionError):
            env_ready.scale("")
        assert fake_runner.commands == []

    def test_cleanup(self, env_ready, fake_runner):
        env_ready.cleanup()
        assert fake_runner.index_of("down -v") < fake_runner.index_of("docker system prune -f")


class TestBackupRestore:
    def test_backup_filename(self):
        assert backup_filename(datetime(2024, 1, 1, 12, 0, 0)) == "backup_20240101_120000.sql"

    def test_backup_writes_dump(self, env_ready, fake_runner, project_dir):
        fake_runner.respond("pg_dump", stdout="CREATE TABLE workflow_entity ();\n")

        path = env_ready.backup()

        assert path.parent == project_dir
        assert re.fullmatch(r"backup_\d{8}_\d{6}\.sql", path.name)
        assert path.read_text() == "CREATE TABLE workflow_entity ();\n"
        assert "exec -T postgres pg_dump -U n8n n8n" in fake_runner.commands[-1]

    def test_restore_order(self, env_ready, fake_runner, project_dir):
        dump = project_dir / "backup_20240101_120000.sql"
        dump.write_text("INSERT INTO x VALUES (1);\n")
        steps = []

        env_ready.restore(dump.name, progress_callback=steps.append)

        stop = fake_runner.index_of("stop n8n n8n-worker")
        psql = fake_runner.index_of("exec -T postgres psql -U n8n n8n")
        start = fake_runner.index_of("start n8n n8n-worker")
        assert stop < psql < start
        assert fake_runner.stdin == ["INSERT INTO x VALUES (1);\n"]
        assert steps[0] == "Stopping n8n to restore database..."

    def test_restore_missing_file(self, env_ready, fake_runner):
        with pytest.raises(PreconditionError, match="not found"):
            env_ready.restore("backup_19990101_000000.sql")
        assert fake_runner.commands == []

    def test_restore_requires_env(self, stack, fake_runner, project_dir):
        (project_dir / "backup_20240101_120000.sql").write_text("SELECT 1;\n")

        with pytest.raises(PreconditionError, match=".env file not found"):
            stack.restore("backup_20240101_120000.sql")
        assert fake_runner.commands == []

    def test_restore_reads_relative_path_from_cwd(self, env_ready, fake_runner, tmp_path, monkeypatch):
        elsewhere = tmp_path / "dumps"
        elsewhere.mkdir()
        (elsewhere / "nightly.sql").write_text("SELECT 2;\n")
        monkeypatch.chdir(elsewhere)

        env_ready.restore("nightly.sql")

        expected = shlex.quote(str((elsewhere / "nightly.sql").resolve()))
        assert fake_runner.commands[fake_runner.index_of("psql")].endswith(f"< {expected}")
        assert fake_runner.stdin == ["SELECT 2;\n"]

    def test_restore_failure_leaves_services_stopped(self, env_ready, fake_runner, project_dir):
        dump = project_dir / "broken.sql"
        dump.write_text("garbage")
        fake_runner.respond("psql", return_code=3)

        with pytest.raises(CommandError):
            env_ready.restore(str(dump))
        assert fake_runner.ran("stop n8n n8n-worker")
        assert not fake_runner.ran("start n8n n8n-worker")
