"""Control panel page"""

import html
import socket

from .models.schemas import SystemInfo

# Client-side polling of /api/auth-status after login starts
AUTH_POLL_INTERVAL_MS = 5000
AUTH_POLL_ATTEMPTS = 60


def get_server_ip() -> str:
    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError:
        return "localhost"


def _usage(label: str, stats) -> str:
    if stats is None:
        return f"<div class=\"stat\"><span>{label}</span><strong>n/a</strong></div>"
    return (
        f"<div class=\"stat\"><span>{label}</span>"
        f"<strong>{stats.percent:.1f}%</strong>"
        f"<small>{stats.used} / {stats.total} GB</small></div>"
    )


def render_dashboard(info: SystemInfo, server_ip: str) -> str:
    """Render the control panel with the given snapshot"""
    auth_label = "AUTHENTICATED" if info.authenticated else (
        "AUTHENTICATING" if info.auth_in_progress else "NOT AUTHENTICATED"
    )
    daemon_label = "ONLINE" if info.daemon_running else "OFFLINE"
    cpu = "n/a" if info.cpu_percent is None else f"{info.cpu_percent:.1f}%"

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Tunnel Manager</title>
</head>
<body>
    <header>
        <h1>Tunnel Manager</h1>
        <p>Server: {html.escape(server_ip)}</p>
    </header>

    <section id="status">
        <div class="stat"><span>Authentication</span><strong id="auth-state">{auth_label}</strong></div>
        <div class="stat"><span>cloudflared</span><strong>{daemon_label}</strong></div>
        <div class="stat"><span>CPU</span><strong>{cpu}</strong></div>
        {_usage("Memory", info.memory)}
        {_usage("Disk", info.disk)}
        <button id="auth-button" onclick="authenticate()">Authenticate</button>
        <p id="auth-link"></p>
    </section>

    <section id="actions">
        <form onsubmit="return act(event, 'create')">
            <input name="tunnel_name" placeholder="tunnel name" required>
            <button type="submit">Create</button>
        </form>
        <form onsubmit="return act(event, 'route')">
            <input name="tunnel_name" placeholder="tunnel name" required>
            <input name="hostname" placeholder="app.example.com" required>
            <button type="submit">Route DNS</button>
        </form>
        <p id="message"></p>
    </section>

    <section>
        <h2>Tunnels</h2>
        <table>
            <thead><tr><th>Name</th><th>ID</th><th>Created</th><th>Connections</th><th></th></tr></thead>
            <tbody id="tunnels"></tbody>
        </table>
    </section>

    <script>
        function show(result) {{
            document.getElementById('message').textContent = result.message;
            if (result.success) loadTunnels();
        }}

        async function post(url, data) {{
            const response = await fetch(url, {{method: 'POST', body: new URLSearchParams(data)}});
            return response.json();
        }}

        function act(event, action) {{
            event.preventDefault();
            const data = Object.fromEntries(new FormData(event.target));
            data.action = action;
            post('/api/action', data).then(show);
            return false;
        }}

        function removeTunnel(name) {{
            if (!confirm('Delete tunnel ' + name + '?')) return;
            post('/api/action', {{action: 'delete', tunnel_name: name}}).then(show);
        }}

        async function loadTunnels() {{
            const tunnels = await (await fetch('/api/tunnels')).json();
            const body = document.getElementById('tunnels');
            body.replaceChildren();
            for (const t of tunnels) {{
                const row = body.insertRow();
                for (const value of [t.name, t.id, t.created_at || '', t.connections ?? '']) {{
                    row.insertCell().textContent = value;
                }}
                const button = document.createElement('button');
                button.textContent = 'Delete';
                button.onclick = () => removeTunnel(t.name);
                row.insertCell().appendChild(button);
            }}
        }}

        async function authenticate() {{
            const result = await post('/api/authenticate', {{}});
            document.getElementById('message').textContent = result.message;
            if (result.auth_url) {{
                const link = document.getElementById('auth-link');
                link.replaceChildren();
                const a = document.createElement('a');
                a.href = result.auth_url;
                a.target = '_blank';
                a.textContent = 'Complete login in your browser';
                link.appendChild(a);
            }}
            pollAuth({AUTH_POLL_ATTEMPTS});
        }}

        function pollAuth(attempts) {{
            if (attempts <= 0) return;
            setTimeout(async () => {{
                const status = await (await fetch('/api/auth-status')).json();
                if (status.authenticated) {{
                    document.getElementById('auth-state').textContent = 'AUTHENTICATED';
                    loadTunnels();
                }} else {{
                    pollAuth(attempts - 1);
                }}
            }}, {AUTH_POLL_INTERVAL_MS});
        }}

        loadTunnels();
    </script>
</body>
</html>
"""
