# htmlshot

An asyncio library that renders HTML in a Chromium-based browser and captures
screenshots of its elements through the Chrome DevTools Protocol.

- The browser process and its temporary profile are cleaned up on close.
- The API is asynchronous and built on `asyncio`.
- Results are base64-encoded images: JPEG (quality 90) by default, or PNG.

## Installation

```
pip install htmlshot
```

The package needs a Chrome, Chromium or Microsoft Edge executable.
`htmlshot.config.default_executable()` looks for one in this order:

1. the path in the `CHROME` environment variable, if that path exists;
2. common executable names on `PATH` (`google-chrome-stable`, `chromium`,
   `microsoft-edge-stable`, `msedge` and others);
3. the standard install locations on macOS, and on Windows the registry entry
   for `chrome.exe` followed by the usual Edge location.

If none is found, `FileNotFoundError` is raised.

The browser listens on a random free local port between 8000 and 8999. Its
profile is kept in a uniquely named directory under `./temp`
(`htmlshot.temp_dir.TempDir`), which is removed when the browser is closed.

## Capturing HTML

```python
import asyncio
import base64

from htmlshot.browser import launch

HTML = """
<html lang="en-US">
<body>
<h1>My test page</h1>
<p>Hello, world!</p>
</body>
</html>
"""

async def main():
    async with await launch() as browser:
        data = await browser.capture_html(HTML, "html")
    with open("shot.jpeg", "wb") as f:
        f.write(base64.b64decode(data))

asyncio.run(main())
```

Use `launch_with_head()` in place of `launch()` to open a visible window;
`BrowserBuilder().headless(False).build()` does the same.

### PNG output

```python
from htmlshot.capture_options import CaptureOptions

options = CaptureOptions().with_raw_png(True)
data = await browser.capture_html_with_options(HTML, "h1", options)
```

## Fine control

```python
tab = await browser.new_tab()
await tab.set_content("<h1>Hello world!</h1>")
element = await tab.find_element("h1")
jpeg = await element.screenshot()        # JPEG, quality 90
png = await element.raw_screenshot()     # PNG
await tab.close()
```

`Element.take_screenshot_with_config(ScreenshotConfig(format=..., quality=...))`
(from `htmlshot.element`) chooses the format directly; `quality` is only sent
for `"jpeg"`.

`set_content` waits until the document, its images and its stylesheets have
loaded, and the page gives up after 30 seconds. `find_element` raises
`LookupError` when no element matches the selector.

`tab.goto(url)` starts navigation but does not wait for the page to load. It is
meant for local HTML files, for example to load fonts and other resources.

In headless mode, `browser.close_init_tab()` closes the blank page the browser
opens at startup. Do not call it with a visible window: there it closes the
whole browser.

## A shared browser

```python
from htmlshot.browser import get_instance, close_instance

browser = await get_instance()   # started once, headless, and shared
tab = await browser.new_tab()
await tab.close()

await close_instance()           # returns True if a browser was closed
```

## Exit hook

`htmlshot.exit_hook.ExitHook` holds a plain (non-async) cleanup function.
After `register()`, it runs on an uncaught exception and, for the first hook
registered in the process, on Ctrl+C, after which the process exits. It also
runs once on `close()` or when leaving a `with` block:

```python
from htmlshot.exit_hook import ExitHook

def cleanup():
    print("Cleaning up...")

with ExitHook(cleanup) as hook:
    hook.register()
    ...
```

## Errors

- `htmlshot.transport.TransportError`: a request got no answer within 5
  seconds, or the connection to the browser failed or closed.
- `htmlshot.launcher.LaunchError`: the browser could not be started or did not
  report its DevTools websocket URL.
- `ValueError`: a reply from the browser lacked an expected field.

## What it does not do

There is no command-line program; the package is a library only. It does not
download a browser, and `goto` does not wait for page loads.