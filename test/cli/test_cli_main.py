from rangetiff import __version__


def test_main(run_cli):
    for command in ["info", "windows", "read"]:
        run_cli(
            [command],
            expected_exit_code=2,
            output_contains="Error: Missing argument",
            raise_exc=False,
        )

    run_cli(
        ["invalid_command"],
        expected_exit_code=2,
        output_contains="Error: No such command",
        raise_exc=False,
    )


def test_version(run_cli):
    run_cli(["--version"], output_contains=__version__)
