"""
Client-side scripts served to managed hosts.

auth.sh is installed as sshd's AuthorizedKeysCommand. setup.sh installs
auth.sh and points sshd at it. Both are parameterized only by the service
base URL.
"""

from string import Template

AUTH_SCRIPT = Template("""\
#!/bin/sh
# keyper AuthorizedKeysCommand
# Usage: auth.sh <user>
set -u

KEYPER_SERVER="${keyper_server}"
CACHE_DIR="$${KEYPER_CACHE_DIR:-/var/cache/keyper}"

user="$${1:?usage: $$0 <user>}"
host="$${KEYPER_HOSTNAME:-$$(hostname)}"
cache="$$CACHE_DIR/$$user"

tmp="$$(mktemp)" || exit 1
trap 'rm -f "$$tmp"' EXIT

if curl -fsS --max-time 10 -o "$$tmp" "$$KEYPER_SERVER/api/v1/keys/$$host/$$user"; then
    # a successful answer replaces the cache, an empty one clears it
    mkdir -p "$$CACHE_DIR" && cp "$$tmp" "$$cache"
    cat "$$tmp"
elif [ -r "$$cache" ]; then
    cat "$$cache"
fi
""")

SETUP_SCRIPT = Template("""\
#!/bin/sh
# keyper host setup: installs auth.sh and configures sshd to use it
set -eu

KEYPER_SERVER="${keyper_server}"
AUTH_SH="/usr/local/bin/keyper-auth.sh"
CACHE_DIR="/var/cache/keyper"
SSHD_DROPIN="/etc/ssh/sshd_config.d/keyper.conf"

curl -fsS --max-time 30 -o "$$AUTH_SH" "$$KEYPER_SERVER/auth.sh"
chown root:root "$$AUTH_SH"
chmod 755 "$$AUTH_SH"

mkdir -p "$$CACHE_DIR"
chown nobody "$$CACHE_DIR"
chmod 700 "$$CACHE_DIR"

mkdir -p "$$(dirname "$$SSHD_DROPIN")"
cat > "$$SSHD_DROPIN" <<EOF
AuthorizedKeysCommand $$AUTH_SH %u
AuthorizedKeysCommandUser nobody
EOF

sshd -t
if command -v systemctl >/dev/null 2>&1; then
    systemctl reload sshd 2>/dev/null || systemctl reload ssh
else
    service ssh reload
fi
echo "keyper configured against $$KEYPER_SERVER"
""")


def render_auth_script(url: str) -> str:
    return AUTH_SCRIPT.substitute(keyper_server=url.rstrip("/"))


def render_setup_script(url: str) -> str:
    return SETUP_SCRIPT.substitute(keyper_server=url.rstrip("/"))
