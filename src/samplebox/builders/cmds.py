# Copyright (C) 2024 Antonio Paolillo. All rights reserved.
# SPDX-License-Identifier: MIT

"""
Dockerfile instructions as objects.

A builder records a list of these commands and only turns them into text when the Dockerfile is
rendered. Most instructions are plain strings; COPY and package installation carry a bit of
structure because their rendering depends on the build context and on the package manager.
"""

from pathlib import Path


class DockerBuildCommand:
    """
    Base class for Dockerfile instructions.
    Subclasses implement `get_str_for_dockerfile` to produce their Dockerfile text.
    """

    def get_str_for_dockerfile(
        self,
        *args,
        **kwargs,
    ) -> str:
        """
        Returns the text of this instruction for a Dockerfile.

        Raises:
            NotImplementedError: If the method is not implemented by the subclass.
        """
        raise NotImplementedError


class StrDockerBuildCommand(DockerBuildCommand):
    """
    A Dockerfile line given verbatim: an instruction, a comment, or an empty line.
    """

    def __init__(self, s: str) -> None:
        super().__init__()
        self._str = s

    def get_str_for_dockerfile(
        self,
        *args,
        **kwargs,
    ) -> str:
        return str(self._str)


class CopyDockerBuildCommand(DockerBuildCommand):
    """
    Represents a Dockerfile COPY instruction.

    Notes:
        - Sources are paths *inside the build context* (relative).
        - Destination is a path *inside the image*.
    """

    def __init__(
        self,
        sources: list[Path],
        destination: Path,
        chown: str | None = None,
        chmod: str | None = None,
    ) -> None:
        """
        Initializes the COPY command.

        Parameters:
            sources: One or more context-relative source paths, as staged by the builder.
            destination: Destination path in the image.
            chown: Optional ownership for copied files (COPY --chown=...).
            chmod: Optional mode for copied files (COPY --chmod=...).

        Raises:
            ValueError: If sources is empty.
        """
        super().__init__()

        srcs = tuple(Path(s) for s in sources)
        if not srcs:
            raise ValueError("COPY requires at least one source path")

        self._sources: tuple[Path, ...] = srcs
        self._destination: Path = Path(destination)

        self._chown = chown
        self._chmod = chmod

    def get_str_for_dockerfile(
        self,
        *args,
        **kwargs,
    ) -> str:
        """
        Generate the Dockerfile `COPY` instruction string.

        This method does not touch the host filesystem: staging is done by the build context.
        """
        flags: list[str] = []
        if self._chown is not None:
            flags.append(f"--chown={self._chown}")
        if self._chmod is not None:
            flags.append(f"--chmod={self._chmod}")

        flags_str = (" " + " ".join(flags)) if flags else ""
        sources_str = " ".join(str(s) for s in self._sources)

        return f"COPY{flags_str} {sources_str} {self._destination}"


class AddPkgDockerBuildCommand(DockerBuildCommand):
    """
    Installs packages with the package manager of the image being built.
    """

    def __init__(
        self,
        packages: list[str],
        use_sudo: bool = False,
        install_recommends: bool = False,
        clean_lists: bool = True,
    ) -> None:
        """
        Parameters:
            packages (List[str]): The package names to install.
            use_sudo (bool): Prefix the package manager calls with `sudo`, for when the
                             instruction runs as a non-root user.
            install_recommends (bool): Also install recommended packages.
            clean_lists (bool): Remove the package lists once installed. Keep them when a later
                                step installs more packages without updating first.

        Raises:
            ValueError: If no package is given.
        """
        super().__init__()
        if not packages:
            raise ValueError("At least one package is required")
        self._packages = list(packages)
        self._use_sudo = use_sudo
        self._install_recommends = install_recommends
        self._clean_lists = clean_lists

    # pylint: disable=arguments-differ
    def get_str_for_dockerfile(
        self,
        pkg_manager: str,
        *args,
        **kwargs,
    ) -> str:
        """
        Generates the RUN instruction installing the packages.

        Parameters:
            pkg_manager (str): The package manager to use (e.g., 'apt').

        Raises:
            ValueError: If an unsupported package manager is specified.
        """
        match pkg_manager:
            case "apt":
                return _add_pkg_apt(
                    packages=self._packages,
                    use_sudo=self._use_sudo,
                    install_recommends=self._install_recommends,
                    clean_lists=self._clean_lists,
                )
            case _:
                raise ValueError(f"Unsupported package manager: {pkg_manager}")


def _add_pkg_apt(
    packages: list[str],
    use_sudo: bool,
    install_recommends: bool,
    clean_lists: bool,
) -> str:
    """
    Formats an apt-get RUN instruction: update, install (sorted packages), optionally clean
    the lists.
    """
    sudo = "sudo " if use_sudo else ""
    no_recommends = "" if install_recommends else " --no-install-recommends"
    fmt_packages = " \\\n".join([f"        {p}" for p in sorted(packages)])
    cmd = f"{sudo}apt-get update && {sudo}apt-get install -y{no_recommends} \\\n{fmt_packages}"
    if clean_lists:
        cmd += f" \\\n    && {sudo}rm -rf /var/lib/apt/lists/*"
    return f"RUN {cmd}"
