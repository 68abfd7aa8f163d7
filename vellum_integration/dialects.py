"""
Dialects - bash, zsh and fish adapters

Each dialect renders the script a user sources from their rc file and
turns navigation/search outcomes into statements that the shell evals.
Dialects hold no state: the cursor lives in a shell variable that the
widgets hand back to ``vellum-hook`` on every call.
"""

import shlex
from typing import Dict, List, Optional

from .context import Session, SESSION_VAR, SESSION_START_VAR
from .cursor import Direction, NavigationOutcome
from .search import SearchOutcome


HOOK_PLACEHOLDER = "@VELLUM_HOOK@"


BASH_INIT = r"""# vellum shell integration for bash
if [[ -z "${bash_preexec_imported:-}" ]]; then
    echo "bash_preexec is required! see https://github.com/rcaloras/bash-preexec" >&2
elif [[ -n "${__VELLUM_SETUP:-}" || ! $- =~ i ]]; then
    true
elif __vellum_env="$(@VELLUM_HOOK@ session --shell bash)"; then
    eval "$__vellum_env"
    unset __vellum_env
    __VELLUM_LINE=""

    __vellum_preexec() {
        @VELLUM_HOOK@ capture -- "$1"
    }
    preexec_functions+=(__vellum_preexec)

    __vellum_precmd() {
        __VELLUM_LINE=""
    }
    precmd_functions+=(__vellum_precmd)

    __vellum_search() {
        local __vellum_out
        __vellum_out="$(@VELLUM_HOOK@ search --shell bash -- "${READLINE_LINE}")" || return
        eval "$__vellum_out"
    }

    __vellum_previous() {
        eval "$(@VELLUM_HOOK@ navigate --shell bash --cursor="${__VELLUM_LINE}" -- -1 "${READLINE_LINE}")"
    }

    __vellum_next() {
        eval "$(@VELLUM_HOOK@ navigate --shell bash --cursor="${__VELLUM_LINE}" -- 1 "${READLINE_LINE}")"
    }

    bind -m emacs -x '"\C-r": __vellum_search'
    bind -m emacs -x '"\e[A": __vellum_previous'
    bind -m emacs -x '"\eOA": __vellum_previous'
    bind -m emacs -x '"\e[B": __vellum_next'
    bind -m emacs -x '"\eOB": __vellum_next'
else
    unset __vellum_env
fi
"""


ZSH_INIT = r"""# vellum shell integration for zsh
if [[ -n "${__VELLUM_SETUP:-}" || ! -o interactive ]]; then
    true
elif __vellum_env="$(@VELLUM_HOOK@ session --shell zsh)"; then
    eval "$__vellum_env"
    unset __vellum_env
    typeset -g __VELLUM_LINE=""

    function __vellum_preexec() {
        \command @VELLUM_HOOK@ capture -- "$1"
    }
    \builtin typeset -ga preexec_functions
    preexec_functions+=(__vellum_preexec)

    function __vellum_precmd() {
        __VELLUM_LINE=""
    }
    \builtin typeset -ga precmd_functions
    precmd_functions+=(__vellum_precmd)

    function vellum-search-widget() {
        local __vellum_out
        __vellum_out="$(@VELLUM_HOOK@ search --shell zsh -- "${LBUFFER}")"
        local ret=$?
        eval "$__vellum_out"
        zle reset-prompt
        return $ret
    }
    zle -N vellum-search-widget
    bindkey -M emacs '^R' vellum-search-widget

    function __vellum_previous() {
        eval "$(@VELLUM_HOOK@ navigate --shell zsh --cursor="${__VELLUM_LINE}" --probe="" -- -1 "${LBUFFER}")"
    }

    function __vellum_next() {
        eval "$(@VELLUM_HOOK@ navigate --shell zsh --cursor="${__VELLUM_LINE}" --probe="" -- 1 "${LBUFFER}")"
    }

    function vellum-up() {
        eval "$(@VELLUM_HOOK@ navigate --shell zsh --cursor="${__VELLUM_LINE}" --probe="${LBUFFER}" -- -1 "${LBUFFER}")"
    }

    function vellum-down() {
        eval "$(@VELLUM_HOOK@ navigate --shell zsh --cursor="${__VELLUM_LINE}" --probe="${RBUFFER}" -- 1 "${LBUFFER}")"
    }

    zle -N __vellum_previous
    zle -N __vellum_next
    zle -N up-line-or-history vellum-up
    zle -N down-line-or-history vellum-down
    zle -N history-substring-search-up __vellum_previous
    zle -N history-substring-search-down __vellum_next
else
    unset __vellum_env
fi
"""


FISH_INIT = r"""# vellum shell integration for fish
if status is-interactive; and not set -q __vellum_setup
    set -l __vellum_env (@VELLUM_HOOK@ session --shell fish | string collect)
    if test -n "$__vellum_env"
        echo "$__vellum_env" | source
        set -g __vellum_line ""

        function __vellum_preexec --on-event fish_preexec
            @VELLUM_HOOK@ capture -- $argv[1]
        end

        function __vellum_precmd --on-event fish_prompt
            set -g __vellum_line ""
        end

        function __vellum_search
            @VELLUM_HOOK@ search --shell fish -- (commandline | string collect -a) | source
            commandline -f repaint
        end

        function __vellum_previous
            @VELLUM_HOOK@ navigate --shell fish --cursor="$__vellum_line" -- -1 (commandline | string collect -a) | source
        end

        function __vellum_next
            @VELLUM_HOOK@ navigate --shell fish --cursor="$__vellum_line" -- 1 (commandline | string collect -a) | source
        end

        bind \cr __vellum_search
        bind \e\[A __vellum_previous
        bind \eOA __vellum_previous
        bind \e\[B __vellum_next
        bind \eOB __vellum_next
    end
end
"""


class Dialect:
    """Base adapter for POSIX-like shells."""

    name = ""
    template = ""
    cursor_var = "__VELLUM_LINE"

    def quote(self, value: str) -> str:
        return shlex.quote(value)

    def assign(self, name: str, value: str) -> str:
        return f"{name}={self.quote(value)}"

    def export(self, name: str, value: str) -> str:
        return f"export {name}={self.quote(value)}"

    def sentinel(self) -> str:
        return "readonly __VELLUM_SETUP=1"

    def set_buffer(self, text: str) -> List[str]:
        raise NotImplementedError

    def bypass(self, direction: int) -> List[str]:
        return []

    def session_statements(self, session: Session) -> str:
        env: Dict[str, str] = session.to_env()
        lines = [self.export(SESSION_VAR, env[SESSION_VAR])]
        if SESSION_START_VAR in env:
            lines.append(self.export(SESSION_START_VAR, env[SESSION_START_VAR]))
        lines.append(self.sentinel())
        return "\n".join(lines)

    def navigation_statements(self, outcome: NavigationOutcome, cursor: str, direction: int) -> str:
        """Statements applying one navigation step; empty when nothing changes."""
        if outcome.bypass:
            return "\n".join(self.bypass(direction))
        if not outcome.changed:
            return ""
        return "\n".join([self.assign(self.cursor_var, cursor)] + self.set_buffer(outcome.buffer))

    def search_statements(self, outcome: SearchOutcome) -> str:
        if not outcome.changed:
            return ""
        return "\n".join(self.set_buffer(outcome.buffer))

    def render_init(self, program: str = "vellum-hook") -> str:
        """Script to source from the user's rc file."""
        return self.template.replace(HOOK_PLACEHOLDER, shlex.quote(program))


class BashDialect(Dialect):
    name = "bash"
    template = BASH_INIT

    def set_buffer(self, text: str) -> List[str]:
        # bash computes the length itself so the point matches its locale
        return [self.assign("READLINE_LINE", text), "READLINE_POINT=${#READLINE_LINE}"]


class ZshDialect(Dialect):
    name = "zsh"
    template = ZSH_INIT

    def sentinel(self) -> str:
        return "typeset -gr __VELLUM_SETUP=1"

    def set_buffer(self, text: str) -> List[str]:
        return [self.assign("LBUFFER", text)]

    def bypass(self, direction: int) -> List[str]:
        if direction == Direction.PREVIOUS:
            return ["zle up-line"]
        return ["zle down-line"]


class FishDialect(Dialect):
    name = "fish"
    template = FISH_INIT
    cursor_var = "__vellum_line"

    def quote(self, value: str) -> str:
        return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"

    def assign(self, name: str, value: str) -> str:
        return f"set -g {name} {self.quote(value)}"

    def export(self, name: str, value: str) -> str:
        return f"set -gx {name} {self.quote(value)}"

    def sentinel(self) -> str:
        return "set -g __vellum_setup 1"

    def set_buffer(self, text: str) -> List[str]:
        return [f"commandline -r -- {self.quote(text)}"]

    def bypass(self, direction: int) -> List[str]:
        if direction == Direction.PREVIOUS:
            return ["commandline -f up-line"]
        return ["commandline -f down-line"]


DIALECTS: Dict[str, Dialect] = {
    dialect.name: dialect for dialect in (BashDialect(), ZshDialect(), FishDialect())
}


def get_dialect(name: Optional[str]) -> Dialect:
    """Look up a dialect by shell name."""
    try:
        return DIALECTS[name]
    except KeyError:
        raise ValueError(f"Unsupported shell: {name}") from None
