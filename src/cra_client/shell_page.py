"""Bootstrap page and the script injected into every loaded page."""

from __future__ import annotations

import json

from .core.navigation import INTERNAL_SCHEMES
from .core.validator import LOOPBACK_HOSTS

_INIT_SCRIPT = r"""
(() => {
  if (window.__craClientInit) {
    return;
  }
  window.__craClientInit = true;

  const allowedHosts = new Set(__ALLOWED_HOSTS__);
  const loopbackHosts = new Set(__LOOPBACK_HOSTS__);
  const internalSchemes = new Set(__INTERNAL_SCHEMES__);

  const isAllowed = (href) => {
    try {
      const url = new URL(href, window.location.href);
      const scheme = url.protocol.replace(/:$/, '');
      if (internalSchemes.has(scheme)) {
        return true;
      }
      if (scheme !== 'http' && scheme !== 'https') {
        return false;
      }
      const host = url.hostname.toLowerCase().replace(/^\[|\]$/g, '');
      return loopbackHosts.has(host) || allowedHosts.has(host);
    } catch (error) {
      return false;
    }
  };

  window.open = (url) => {
    if (typeof url === 'string' && url.length > 0 && isAllowed(url)) {
      window.location.assign(url);
    }
    return null;
  };

  document.addEventListener(
    'click',
    (event) => {
      const target = event.target;
      if (!(target instanceof Element)) {
        return;
      }
      const link = target.closest('a');
      if (!(link instanceof HTMLAnchorElement) || !link.href) {
        return;
      }
      if (!isAllowed(link.href)) {
        event.preventDefault();
        return;
      }
      if (link.target === '_blank') {
        event.preventDefault();
        window.location.assign(link.href);
      }
    },
    true,
  );

  document.addEventListener(
    'submit',
    (event) => {
      const form = event.target;
      if (!(form instanceof HTMLFormElement)) {
        return;
      }
      const submitter = event.submitter;
      const action = (submitter && submitter.formAction) || form.action || window.location.href;
      if (!isAllowed(action)) {
        event.preventDefault();
        return;
      }
      if (form.target === '_blank') {
        form.target = '_self';
      }
    },
    true,
  );

  window.addEventListener('keydown', (event) => {
    if (event.altKey && event.shiftKey && event.code === 'KeyA' && window.pywebview) {
      window.pywebview.api.get_about_info().then((info) => {
        alert(`${info.title}\nVersion: ${info.version}\nTarget Host: ${info.app_host}`);
      });
    }
  });
})();
"""


def build_init_script(allowed_hosts) -> str:
    return (
        _INIT_SCRIPT.replace("__ALLOWED_HOSTS__", json.dumps(sorted(allowed_hosts)))
        .replace("__LOOPBACK_HOSTS__", json.dumps(sorted(LOOPBACK_HOSTS)))
        .replace("__INTERNAL_SCHEMES__", json.dumps(sorted(INTERNAL_SCHEMES)))
    )


def notify_script(title: str, message: str) -> str:
    return (
        "window.craClient && window.craClient.notify("
        f"{json.dumps(title)}, {json.dumps(message)});"
    )


BOOTSTRAP_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>CRA Client</title>
<style>
  body { margin: 0; font-family: "Segoe UI", system-ui, sans-serif; background: #f3f4f6; color: #111827; }
  .shell { display: flex; align-items: center; justify-content: center; min-height: 100vh; }
  .card { background: #fff; border-radius: 12px; padding: 32px 40px; width: 480px;
          box-shadow: 0 10px 30px rgba(0, 0, 0, 0.08); }
  h1 { margin: 0 0 4px; font-size: 22px; }
  .muted { color: #6b7280; margin: 0 0 20px; }
  .status { padding: 10px 14px; border-radius: 8px; margin-bottom: 16px; }
  .status.loading { background: #eff6ff; color: #1d4ed8; }
  .status.ok { background: #ecfdf5; color: #047857; }
  .status.warn { background: #fffbeb; color: #b45309; }
  .status.error { background: #fef2f2; color: #b91c1c; }
  .actions { display: flex; gap: 8px; }
  button { padding: 8px 16px; border-radius: 6px; border: 1px solid #d1d5db; background: #fff; cursor: pointer; }
  button:disabled { opacity: 0.5; cursor: default; }
  .details { white-space: pre-wrap; font-size: 13px; color: #374151; margin-top: 16px; }
  #aboutBody { white-space: pre-wrap; }
</style>
</head>
<body>
<main class="shell">
  <section class="card">
    <h1>CRA Client</h1>
    <p id="subtitle" class="muted">Initializing desktop client...</p>
    <div id="status" class="status loading">Checking server reachability...</div>
    <div class="actions">
      <button id="retry" type="button" disabled>Retry</button>
      <button id="about" type="button">About</button>
    </div>
    <p id="details" class="details"></p>
  </section>
  <dialog id="aboutDialog">
    <form method="dialog">
      <h2>About CRA Client</h2>
      <p id="aboutBody"></p>
      <div class="actions"><button type="submit">Close</button></div>
    </form>
  </dialog>
</main>
<script>
  const statusEl = document.getElementById('status');
  const subtitleEl = document.getElementById('subtitle');
  const detailsEl = document.getElementById('details');
  const retryBtn = document.getElementById('retry');
  const aboutBtn = document.getElementById('about');
  const aboutDialog = document.getElementById('aboutDialog');
  const aboutBody = document.getElementById('aboutBody');

  function setStatus(kind, message) {
    statusEl.className = `status ${kind}`;
    statusEl.textContent = message;
  }

  function setDetails(message) {
    detailsEl.textContent = message;
  }

  window.craClient = {
    notify(title, message) {
      setStatus('warn', title);
      setDetails(message);
    },
  };

  async function showAboutDialog() {
    try {
      const info = await window.pywebview.api.get_about_info();
      const build = info.web_build_hash ? `\\nWeb build: ${info.web_build_hash}` : '';
      aboutBody.textContent =
        `${info.title}\\nVersion: ${info.version}\\nTarget Host: ${info.app_host}\\nURL: ${info.app_url}${build}`;
    } catch (error) {
      aboutBody.textContent = `About information unavailable: ${String(error)}`;
    }
    aboutDialog.showModal();
  }

  async function openRemoteApp(state) {
    if (state.build_parity_ok) {
      setStatus('loading', 'Opening remote app...');
      setDetails('Please wait while the desktop client switches to the web application.');
    }
    retryBtn.disabled = true;
    try {
      await window.pywebview.api.launch_app();
    } catch (error) {
      setStatus('error', 'Could not open the app.');
      setDetails(String(error));
    }
  }

  async function render(state) {
    subtitleEl.textContent = `Version ${state.version}`;
    retryBtn.disabled = !state.retry_enabled;

    switch (state.phase) {
      case 'CONFIG_ERROR':
        setStatus('error', 'Configuration error');
        setDetails(state.config_error || 'Runtime configuration is incomplete.');
        return;
      case 'UNREACHABLE':
        setStatus('error', 'Server unreachable');
        setDetails(state.reachability_error || 'The server did not respond.');
        return;
      case 'PARITY_BLOCKED':
        setStatus('error', 'Web build is not supported');
        setDetails(state.build_parity_error || 'The server build could not be verified.');
        return;
      case 'LAUNCHED':
        if (!state.build_parity_ok) {
          setStatus('warn', 'Web build warning');
          setDetails(state.build_parity_error || 'The server build could not be verified.');
        }
        await openRemoteApp(state);
        return;
      default:
        setStatus('loading', 'Checking server reachability...');
        setDetails('');
    }
  }

  async function retryConnection() {
    setStatus('loading', 'Retrying connection...');
    setDetails('Attempting to reach the server again.');
    retryBtn.disabled = true;
    try {
      await render(await window.pywebview.api.retry_connect());
    } catch (error) {
      setStatus('error', 'Server is still unreachable.');
      setDetails(String(error));
      retryBtn.disabled = false;
    }
  }

  async function bootstrap() {
    setStatus('loading', 'Checking configuration...');
    setDetails('Loading runtime settings and validating connectivity.');
    try {
      await render(await window.pywebview.api.bootstrap_state());
    } catch (error) {
      setStatus('error', 'Bootstrap failed');
      setDetails(String(error));
    }
  }

  retryBtn.addEventListener('click', () => { void retryConnection(); });
  aboutBtn.addEventListener('click', () => { void showAboutDialog(); });

  if (window.pywebview && window.pywebview.api) {
    void bootstrap();
  } else {
    window.addEventListener('pywebviewready', () => { void bootstrap(); });
  }
</script>
</body>
</html>
"""
