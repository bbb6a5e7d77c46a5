"""Tests for logging setup."""

from loguru import logger

from workspace_migrate.utils.logging import setup_logging


class TestSetupLogging:
    def teardown_method(self):
        logger.remove()

    def test_console_includes_component(self, capsys):
        setup_logging('DEBUG')
        logger.bind(component='BlobRelocator').info('relocated public/p1/a.js')
        logger.info('unbound record')

        err = capsys.readouterr().err
        assert 'BlobRelocator' in err
        assert 'relocated public/p1/a.js' in err
        assert 'workspace-migrate' in err

    def test_level_filters_console(self, capsys):
        setup_logging('WARNING')
        logger.info('hidden')
        logger.warning('shown')

        err = capsys.readouterr().err
        assert 'hidden' not in err
        assert 'shown' in err

    def test_file_sink_created(self, tmp_path):
        log_file = tmp_path / 'logs' / 'migration.log'

        setup_logging('INFO', log_file=str(log_file))

        assert log_file.parent.is_dir()
        assert log_file.exists()
