from rich.pretty import pprint

from clipper import *


class Options(Clip):
    def declare(self):
        self.port = self.dopt("port", 80, descr="Host port, or 80 if missing")
        self.host = self.ropt("host", descr="Host address")
        self.verbose = self.flag("verbose", descr="Print every extraction step")
        self.check(Check.UNRECOGNIZED, Check.NO_REPEATED, Check.AUTO_HELP)


if __name__ == '__main__':
    pprint(Options.parse(fancy=True))
