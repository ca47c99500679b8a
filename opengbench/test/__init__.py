"""
OpenG Adapter Test Suite

Test modules:
- test_idmap: Dense vertex id assignment and lookups in both directions
- test_transcode: VE -> OpenG csv conversion on the bundled tiny graph
- test_jobs: Algorithm parameters and OpenG command lines
- test_runner: Process execution, output streaming, timeouts
- test_results: Translating OpenG output back to native ids
- test_config: Configuration parsing and directory checks
- test_platform: Upload / execute / delete against fake OpenG binaries
- test_openg_run: Command line entry point

Usage:
    pytest opengbench/test -v
"""
