"""
Interactive console front end for the AOS shell
"""

import cmd
import logging
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .interpreter import ShellInterpreter
from .parser import ShellResult

logger = logging.getLogger('AOS.shell.console')


class AOSConsole(cmd.Cmd):
    """Line-oriented REPL that hands every line to a ShellInterpreter"""

    MAX_HISTORY = 1000

    def __init__(self, interpreter: ShellInterpreter, console: Optional[Console] = None):
        super().__init__()
        self.interpreter = interpreter
        self.console = console or Console()
        self.history: List[str] = []
        self.intro = None
        self.prompt = self._get_prompt()

    def _get_prompt(self) -> str:
        user = self.interpreter.env.get('USER', 'aussie')
        return f"{user}@aussie-os:{self.interpreter.cwd}$ "

    def show_banner(self):
        self.console.print(Panel.fit(
            "[bold]Aussie OS[/bold] kernel shell\n"
            "Type 'help' for commands, 'exit' to leave",
            border_style='cyan'))

    def show_result(self, result: ShellResult):
        if result.stdout:
            self.console.print(result.stdout, markup=False, highlight=False)
        if result.stderr:
            self.console.print(result.stderr, style='bold red', markup=False, highlight=False)

    def precmd(self, line):
        if line.strip():
            self.history.append(line.strip())
            del self.history[:-self.MAX_HISTORY]
        return line

    def postcmd(self, stop, line):
        self.prompt = self._get_prompt()
        return stop

    def emptyline(self):
        return False

    def default(self, line):
        self.show_result(self.interpreter.execute(line))
        return False

    def do_help(self, arg):
        """Show available commands"""
        if arg:
            self.show_result(self.interpreter.execute(f"help {arg}"))
            return False

        table = Table(title='Commands', show_header=True, header_style='bold cyan')
        table.add_column('Command')
        table.add_column('Description')
        for name in sorted(self.interpreter.commands):
            table.add_row(name, self.interpreter.short_help(name))
        table.add_row('exit', 'Leave the console')
        self.console.print(table)
        return False

    def do_history(self, arg):
        """Show command history"""
        for i, line in enumerate(self.history, 1):
            self.console.print(f"{i:5d}  {line}", markup=False, highlight=False)

    def do_exit(self, arg):
        """Exit the shell"""
        self.console.print('Goodbye!')
        return True

    def do_EOF(self, arg):
        """Handle Ctrl+D"""
        self.console.print()
        return self.do_exit(arg)

    def run(self):
        self.show_banner()
        while True:
            try:
                self.cmdloop()
                break
            except KeyboardInterrupt:
                self.console.print('^C')
