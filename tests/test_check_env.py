from achievement_alerts.check_env import main, missing_env_vars, required_env_vars


def test_missing_env_vars_treats_empty_values_as_present():
    assert missing_env_vars({"DATABASE_URL": ""}, ["DATABASE_URL"]) == []
    assert missing_env_vars({}, ["DATABASE_URL", "REDIS_URL"]) == ["DATABASE_URL", "REDIS_URL"]


def test_redis_backend_requires_redis_url():
    assert required_env_vars({"FEED_BACKEND": "memory"}) == ["DATABASE_URL"]
    assert required_env_vars({"FEED_BACKEND": "Redis"}) == ["DATABASE_URL", "REDIS_URL"]


def test_main_fails_without_env_file(tmp_path, capsys):
    assert main([str(tmp_path / ".env")]) == 1
    assert ".env file not found" in capsys.readouterr().err


def test_main_lists_missing_variables(tmp_path, capsys):
    env = tmp_path / ".env"
    env.write_text("FEED_BACKEND=redis\nDATABASE_URL=sqlite://\n")
    assert main([str(env)]) == 1
    err = capsys.readouterr().err
    assert "REDIS_URL" in err
    assert "DATABASE_URL" not in err


def test_main_succeeds_with_complete_env(tmp_path, capsys):
    env = tmp_path / ".env"
    env.write_text("DATABASE_URL=sqlite:///./achievement_alerts.db\n")
    assert main([str(env)]) == 0
    assert "validated successfully" in capsys.readouterr().out
