import argparse
import importlib.util
import os
import sys

from playwright.sync_api import sync_playwright, Error as PlaywrightError
from rich.console import Console

from probe_config import (
    DEFAULT_CLI_OUTPUT_FORMAT,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_REPEAT_TIMES,
    DEFAULT_VIEWPORT_SIZE,
    DEFAULT_WAIT_UNTIL,
    MAX_POLL_ATTEMPTS,
    NAVIGATION_TIMEOUT_MS,
    OUTPUT_FORMATS,
    POLL_INTERVAL_MS,
    SETTLE_MS,
    URL_REGEX,
)
from probe_errors import ProbeError, ResourceError, ValidationError
from probe_output import render, validate_output_format, write_output
from probe_runner import (
    parse_wait_conditions,
    run_load_probe,
    validate_repeat,
    validate_settle_ms,
)


# ================= LOGGING =================

def log(msg):
    print(f"[+] {msg}", file=sys.stderr, flush=True)


def log_error(msg):
    print(f"[!] {msg}", file=sys.stderr, flush=True)


class Spinner:
    """Progress sink for the runner; quiet=True turns it into a no-op."""

    def __init__(self, quiet=False):
        self.console = Console(stderr=True)
        self.quiet = quiet
        self._status = None

    def __enter__(self):
        if not self.quiet:
            self._status = self.console.status("Launching browser")
            self._status.start()
        return self

    def __exit__(self, *exc):
        if self._status:
            self._status.stop()
            self._status = None

    def info(self, text):
        if self._status:
            self._status.update(text)

    def step(self, current, total):
        self.info(f"Extracting metrics {current}/{total}")


# ================= VALIDATION =================

def validate_url(url):
    if not url or not URL_REGEX.match(url):
        raise ValidationError(f"Invalid URL: {url!r}")
    return url


def load_custom_path(path):
    """Load a user script exposing run(page, log), used to prepare the page."""
    if not os.path.isfile(path):
        raise ValidationError(f"Custom path file not found: {path}")

    spec = importlib.util.spec_from_file_location("load_probe_custom_path", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    run = getattr(module, "run", None)
    if not callable(run):
        raise ValidationError(f"Custom path file {path} does not define run(page, log)")
    return run


# ================= SESSION =================

def measure(url, repeat=DEFAULT_REPEAT_TIMES, headless=True,
            width=DEFAULT_VIEWPORT_SIZE[0], height=DEFAULT_VIEWPORT_SIZE[1],
            output_format=DEFAULT_OUTPUT_FORMAT, output_file=None, custom_path=None,
            wait_until=DEFAULT_WAIT_UNTIL, settle_ms=SETTLE_MS,
            poll_interval_ms=POLL_INTERVAL_MS, max_polls=MAX_POLL_ATTEMPTS,
            quiet=True, color=False):
    validate_url(url)
    validate_output_format(output_format)
    validate_repeat(repeat)
    validate_settle_ms(settle_ms)
    parse_wait_conditions(wait_until)
    custom_run = load_custom_path(custom_path) if custom_path else None

    with Spinner(quiet=quiet) as spinner:
        with sync_playwright() as p:
            try:
                browser = p.chromium.launch(headless=headless)
            except PlaywrightError as e:
                raise ResourceError(f"Could not launch Chromium: {e}") from e

            try:
                context = browser.new_context(viewport={"width": int(width), "height": int(height)})
                page = context.new_page()

                if custom_run:
                    custom_run(page, spinner.info)

                spinner.info(f"Testing {url}...")
                page.goto(url, wait_until="load", timeout=NAVIGATION_TIMEOUT_MS)

                cdp = context.new_cdp_session(page)
                cdp.send("Performance.enable")

                result = run_load_probe(
                    page, cdp,
                    repeat=repeat,
                    wait_until=wait_until,
                    log_step=spinner.step,
                    settle_ms=settle_ms,
                    poll_interval_ms=poll_interval_ms,
                    max_polls=max_polls,
                )
            except PlaywrightError as e:
                raise ResourceError(f"Browser session failed for {url}: {e}") from e
            finally:
                browser.close()

    output = render(result, output_format, color=color)

    if output_file:
        # files never get terminal colour codes
        write_output(render(result, output_format), output_file)
        log(f"Data written to {output_format} file: {output_file}")

    return output


# ================= CLI =================

def positive_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {number}")
    return number


def non_negative_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {number}")
    return number


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="load-probe",
        description="Measures web application loading metrics",
    )
    parser.add_argument("url")
    parser.add_argument("-r", "--repeat", type=positive_int, default=DEFAULT_REPEAT_TIMES,
                        help="The number of times the page metrics are measured")
    parser.add_argument("-w", "--width", type=positive_int, default=DEFAULT_VIEWPORT_SIZE[0],
                        help="The viewport's width to set")
    parser.add_argument("-H", "--height", type=positive_int, default=DEFAULT_VIEWPORT_SIZE[1],
                        help="The viewport's height to set")
    parser.add_argument("-c", "--custom-path",
                        help="Python file defining run(page, log), executed before measuring")
    parser.add_argument("-o", "--output-format", default=DEFAULT_CLI_OUTPUT_FORMAT,
                        help=f"The desired output format ({', '.join(OUTPUT_FORMATS)})")
    parser.add_argument("--output-file", help="Also write the output to this path")
    parser.add_argument("--wait-until", default=DEFAULT_WAIT_UNTIL,
                        help="Comma-separated load states to wait for on each reload")
    parser.add_argument("--settle-ms", type=non_negative_int, default=SETTLE_MS,
                        help="Pause between two reloads")
    parser.add_argument("--max-polls", type=positive_int, default=MAX_POLL_ATTEMPTS,
                        help="Performance counter polls before giving up on a run")
    parser.add_argument("--no-headless", dest="headless", action="store_false",
                        help="Show the browser window")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    try:
        output = measure(
            args.url,
            repeat=args.repeat,
            headless=args.headless,
            width=args.width,
            height=args.height,
            output_format=args.output_format,
            output_file=args.output_file,
            custom_path=args.custom_path,
            wait_until=args.wait_until,
            settle_ms=args.settle_ms,
            max_polls=args.max_polls,
            quiet=False,
            color=sys.stdout.isatty(),
        )
    except ProbeError as e:
        log_error(f"{type(e).__name__}: {e}")
        return 1
    except KeyboardInterrupt:
        return 130

    print(output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
