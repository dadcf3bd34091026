"""
Segment — unidade de trabalho rastreada pelo makepipe.

Um Segment é criado a cada chamada `make_*` e registra a relação entre
targets (arquivos produzidos), dependencies (arquivos lidos), packages
(bibliotecas instaladas das quais os targets dependem) e a instrução que
produz os targets.

A instrução é modelada como uma união etiquetada (`Payload`):
    - `Recipe`: código Python avaliado no namespace do contexto; o valor da
      última expressão é o `result` do Segment
    - `Source`: caminho de um script Python executado no namespace do
      contexto; o `result` é sempre o `RegisterContext` da execução

Responsabilidades do módulo:
    - Validar o Segment na construção (falha atômica, sem Segment parcial)
    - Decidir, via oráculo de staleness, se a instrução deve ser executada
    - Executar, cronometrar e registrar o resultado da execução
    - Projetar o Segment em nós e arestas (`nodes`, `edges`)
    - Produzir um resumo textual (`text_summary`)

Máquina de estados de `execute`:
    Constructed → {Skipped, Executed}; cada chamada sobrescreve por inteiro
    `executed`, `result` e `execution_time`.

Invariantes:
    - `targets` é não vazio e nenhum target aparece em `dependencies`
    - Nenhum target coincide com o script de um `Source`
    - Uma exceção durante a instrução não altera `executed`, `result`
      nem `execution_time`
    - `label` e `note` nunca voltam a vazio depois de definidos

Limites explícitos:
    - Não executa em paralelo, não usa hashing de conteúdo
    - Não valida os efeitos colaterais da instrução
    - Não desenha o grafo
"""

from __future__ import annotations

import ast
import os
import textwrap
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, ClassVar, Dict, Iterable, List, Optional, TextIO, Union

import pandas as pd

from makepipe.core.exceptions import (
    InvalidContextError,
    InvalidRecipeError,
    SegmentTypeError,
    SourceNotFoundError,
    TargetDependencyOverlapError,
    TargetSourceOverlapError,
)

from .context import ExecutionContext, RegisterContext
from .graph import EDGE_COLUMNS, NODE_COLUMNS, concat_frames, new_edge, new_node
from .staleness import as_str_list, find_package, out_of_date


RECIPE_FILENAME = "<recipe>"


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Recipe:
    """Instrução em processo: bloco de código Python ainda não avaliado."""

    expression: str
    kind: ClassVar[str] = "recipe"

    @classmethod
    def parse(cls, recipe: Union[str, ast.AST]) -> "Recipe":
        """
        Valida e normaliza uma recipe.

        Aceita código-fonte (`str`, dedentado) ou uma árvore `ast` já
        construída (convertida de volta a texto).

        Raises:
            InvalidRecipeError: Se a recipe não for código Python válido.
        """
        if isinstance(recipe, (ast.Module, ast.Expression, ast.Interactive)):
            return cls(expression=ast.unparse(recipe))

        if not isinstance(recipe, str):
            raise InvalidRecipeError(
                "`recipe` must be Python source code",
                details={"received": type(recipe).__name__},
            )

        text = textwrap.dedent(recipe).strip()
        if not text:
            raise InvalidRecipeError("`recipe` must not be empty")
        try:
            ast.parse(text, filename=RECIPE_FILENAME, mode="exec")
        except SyntaxError as e:
            raise InvalidRecipeError(
                "`recipe` must be a valid Python expression or block",
                details={"error": str(e), "lineno": e.lineno},
            ) from e
        return cls(expression=text)

    @property
    def instruction_text(self) -> str:
        return self.expression

    @property
    def instruction_bullet(self) -> str:
        return f"Recipe: \n\n{self.expression}\n"

    @property
    def title(self) -> Optional[str]:
        return None

    def effective_dependencies(self, dependencies: List[str]) -> List[str]:
        return list(dependencies)

    def start(self, context: ExecutionContext) -> None:
        return None

    def run(self, context: ExecutionContext) -> Any:
        """Avalia o bloco no namespace do contexto; devolve o valor da última expressão."""
        tree = ast.parse(self.expression, filename=RECIPE_FILENAME, mode="exec")
        last: Optional[ast.Expression] = None
        if tree.body and isinstance(tree.body[-1], ast.Expr):
            last = ast.Expression(body=tree.body.pop().value)

        if tree.body:
            exec(compile(tree, RECIPE_FILENAME, "exec"), context.namespace)
        if last is not None:
            return eval(compile(last, RECIPE_FILENAME, "eval"), context.namespace)
        return None

    def outcome(self, started: None, value: Any) -> Any:
        return value

    def result_count(self, result: Any) -> int:
        return 0 if result is None else 1


@dataclass(frozen=True)
class Source:
    """Instrução externa: caminho de um script Python."""

    path: str
    kind: ClassVar[str] = "source"

    @classmethod
    def parse(cls, source: Union[str, "os.PathLike[str]"]) -> "Source":
        """
        Raises:
            SegmentTypeError: Se `source` não for um caminho.
            SourceNotFoundError: Se o script não existir.
        """
        if not isinstance(source, (str, os.PathLike)):
            raise SegmentTypeError(
                "`source` must be a path",
                details={"received": type(source).__name__},
            )
        path = os.fspath(source)
        if not os.path.isfile(path):
            raise SourceNotFoundError(
                "`source` does not exist",
                details={"source": path},
            )
        return cls(path=path)

    @property
    def instruction_text(self) -> str:
        return self.path

    @property
    def instruction_bullet(self) -> str:
        return f"Source: '{self.path}'"

    @property
    def title(self) -> Optional[str]:
        return os.path.basename(self.path)

    def effective_dependencies(self, dependencies: List[str]) -> List[str]:
        return list(dependencies) + [self.path]

    def start(self, context: ExecutionContext) -> RegisterContext:
        # namespace novo para valores registrados, isolado do contexto
        return context.new_register()

    def run(self, context: ExecutionContext) -> Any:
        """
        Executa o script no namespace do contexto (bindings de topo ficam no contexto).

        Durante a execução o script roda como programa principal
        (`__name__ == "__main__"`, `__file__` = caminho do script); os
        valores anteriores dessas chaves são restaurados ao final.
        """
        with open(self.path, "r", encoding="utf-8") as f:
            code = compile(f.read(), self.path, "exec")

        namespace = context.namespace
        script_globals = {"__name__": "__main__", "__file__": self.path}
        previous = {k: namespace[k] for k in script_globals if k in namespace}
        namespace.update(script_globals)
        try:
            exec(code, namespace)
        finally:
            for key in script_globals:
                if key in previous:
                    namespace[key] = previous[key]
                else:
                    namespace.pop(key, None)
        return None

    def outcome(self, started: RegisterContext, value: Any) -> RegisterContext:
        return started

    def result_count(self, result: Any) -> int:
        return 0 if result is None else len(result)


Payload = Union[Recipe, Source]


# ---------------------------------------------------------------------------
# Validação
# ---------------------------------------------------------------------------

def _unique(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


def _check_paths(value: Any, field_name: str, *, required: bool) -> List[str]:
    try:
        paths = as_str_list(value)
    except TypeError as e:
        raise SegmentTypeError(
            f"`{field_name}` must be a path or a collection of paths",
            details={"field": field_name, "received": type(value).__name__},
        ) from e

    if any(not p for p in paths):
        raise SegmentTypeError(
            f"`{field_name}` must not contain empty paths",
            details={"field": field_name},
        )
    if required and not paths:
        raise SegmentTypeError(
            f"`{field_name}` must not be empty",
            details={"field": field_name},
        )
    return _unique(paths)


def _check_packages(value: Any) -> List[str]:
    if value is None:
        return []
    names = [value] if isinstance(value, str) else value
    try:
        names = list(names)
    except TypeError as e:
        raise SegmentTypeError(
            "`packages` must be a string or a collection of strings",
            details={"received": type(value).__name__},
        ) from e
    if not all(isinstance(n, str) and n for n in names):
        raise SegmentTypeError("`packages` must contain non-empty strings")

    names = _unique(names)
    for name in names:
        find_package(name)  # MissingPackageError se não instalado
    return names


def _check_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise SegmentTypeError(
            f"`{field_name}` must be a bool",
            details={"field": field_name, "received": type(value).__name__},
        )
    return value


def _check_duration(value: Any) -> Optional[timedelta]:
    if value is not None and not isinstance(value, timedelta):
        raise SegmentTypeError(
            "`execution_time` must be a timedelta or None",
            details={"received": type(value).__name__},
        )
    return value


def _check_id(value: Any) -> int:
    if isinstance(value, bool):
        raise SegmentTypeError("`id` must be an integer", details={"received": "bool"})
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int):
        raise SegmentTypeError(
            "`id` must be an integer",
            details={"received": type(value).__name__},
        )
    return value


def format_duration(duration: Optional[timedelta]) -> str:
    if duration is None:
        return "NULL"
    return f"{duration.total_seconds():.3f} secs"


# ---------------------------------------------------------------------------
# Segment
# ---------------------------------------------------------------------------

class Segment:
    """
    Unidade de trabalho rastreada: targets, dependencies, packages e instrução.

    Campos:
        - id: inteiro único no Pipeline (somente leitura)
        - payload: `Recipe` ou `Source` (somente leitura)
        - targets / dependencies / packages: listas sem duplicatas
        - context: `ExecutionContext` onde a instrução é executada
        - force: executa mesmo com targets atualizados
        - executed / result / execution_time: resultado da última execução
        - label / note: anotações livres

    Raises (construção):
        SegmentValidationError e subclasses. Nenhum Segment parcial é criado.
    """

    def __init__(
        self,
        id: int,
        payload: Payload,
        targets: Any,
        dependencies: Any = None,
        packages: Any = None,
        *,
        context: ExecutionContext,
        force: bool = False,
        executed: bool = False,
        result: Any = None,
        execution_time: Optional[timedelta] = None,
    ):
        if not isinstance(payload, (Recipe, Source)):
            raise SegmentTypeError(
                "`payload` must be a Recipe or a Source",
                details={"received": type(payload).__name__},
            )

        segment_id = _check_id(id)
        target_list = _check_paths(targets, "targets", required=True)
        dependency_list = _check_paths(dependencies, "dependencies", required=False)
        if not isinstance(context, ExecutionContext):
            raise SegmentTypeError(
                "`context` must be an ExecutionContext",
                details={"received": type(context).__name__},
            )
        force = _check_bool(force, "force")
        executed = _check_bool(executed, "executed")
        execution_time = _check_duration(execution_time)
        package_list = _check_packages(packages)

        if isinstance(payload, Source) and payload.path in target_list:
            raise TargetSourceOverlapError(
                "`source` must not be among the `targets`",
                details={"source": payload.path},
            )

        overlap = [t for t in target_list if t in dependency_list]
        if overlap:
            raise TargetDependencyOverlapError(
                "`dependencies` must not be among the `targets`",
                details={"overlap": overlap},
            )

        self._id = segment_id
        self._payload = payload
        self.targets: List[str] = target_list
        self.dependencies: List[str] = dependency_list
        self.packages: List[str] = package_list
        self.context: ExecutionContext = context
        self.force: bool = force
        self.executed: bool = executed
        self.result: Any = result
        self.execution_time: Optional[timedelta] = execution_time
        self.label: Optional[str] = None
        self.note: Optional[str] = None

    # -----------------------------
    # Construtores por variante
    # -----------------------------
    @classmethod
    def from_recipe(
        cls,
        id: int,
        recipe: Union[str, ast.AST],
        targets: Any,
        dependencies: Any = None,
        packages: Any = None,
        **kwargs: Any,
    ) -> "Segment":
        return cls(id, Recipe.parse(recipe), targets, dependencies, packages, **kwargs)

    @classmethod
    def from_source(
        cls,
        id: int,
        source: Union[str, "os.PathLike[str]"],
        targets: Any,
        dependencies: Any = None,
        packages: Any = None,
        **kwargs: Any,
    ) -> "Segment":
        return cls(id, Source.parse(source), targets, dependencies, packages, **kwargs)

    # -----------------------------
    # Identidade
    # -----------------------------
    @property
    def id(self) -> int:
        return self._id

    @property
    def payload(self) -> Payload:
        return self._payload

    @property
    def kind(self) -> str:
        return self._payload.kind

    @property
    def recipe(self) -> Optional[str]:
        return self._payload.expression if isinstance(self._payload, Recipe) else None

    @property
    def source(self) -> Optional[str]:
        return self._payload.path if isinstance(self._payload, Source) else None

    # -----------------------------
    # Execução
    # -----------------------------
    def is_outdated(self) -> bool:
        """Consulta o oráculo de staleness, sem considerar `force`."""
        return out_of_date(
            self.targets,
            self._payload.effective_dependencies(self.dependencies),
            self.packages,
        )

    def execute(self, context: Optional[ExecutionContext] = None, quiet: bool = False) -> "Segment":
        """
        Executa a instrução se os targets estiverem desatualizados (ou se `force`).

        Args:
            context: Novo contexto de execução, adotado antes da execução.
            quiet: Suprime as notificações de execução.

        Returns:
            Segment: o próprio Segment, com `executed`, `result` e
            `execution_time` sobrescritos.

        Raises:
            InvalidContextError: Se `context` não for um ExecutionContext.
            MissingDependencyError: Se uma dependency não existir.
            Exception: Qualquer erro da instrução é propagado sem alterar o Segment.
        """
        if context is not None:
            if not isinstance(context, ExecutionContext):
                raise InvalidContextError(
                    "`context` must be an ExecutionContext",
                    details={"received": type(context).__name__},
                )
            self.context = context

        outdated = True
        if not self.force:
            outdated = self.is_outdated()

        started = self._payload.start(self.context)

        if outdated:
            if not quiet:
                self.context.log(
                    segment_id=self._id, level="INFO",
                    message="Targets are out of date. Updating...",
                )
            t0 = time.perf_counter()
            value = self._payload.run(self.context)
            execution_time: Optional[timedelta] = timedelta(seconds=time.perf_counter() - t0)
            if not quiet:
                self.context.log(
                    segment_id=self._id, level="INFO", message="Finished updating",
                    execution_time=execution_time.total_seconds(),
                )
        else:
            execution_time = None
            value = None
            if not quiet:
                self.context.log(segment_id=self._id, level="INFO", message="Targets are up to date")

        self.update_result(outdated, execution_time, self._payload.outcome(started, value))
        return self

    def update_result(self, executed: bool, execution_time: Optional[timedelta], result: Any) -> "Segment":
        """Sobrescreve o resultado da última execução (sem transformação)."""
        self.executed = _check_bool(executed, "executed")
        self.execution_time = _check_duration(execution_time)
        self.result = result
        return self

    def annotate(self, label: Optional[str] = None, note: Optional[str] = None) -> "Segment":
        """Define `label`/`note` apenas quando o valor informado é não vazio."""
        if label:
            self.label = label
        if note:
            self.note = note
        return self

    # -----------------------------
    # Grafo
    # -----------------------------
    @property
    def edges(self) -> pd.DataFrame:
        """
        Arestas dependency→instrução, package→instrução e instrução→target.

        Se alguma dependency efetiva (dependencies + script) não existe,
        todas as arestas ficam desatualizadas: ela costuma ser o target
        ainda não criado de um Segment anterior. Caso contrário, o estado
        vem do oráculo. Por fim, arestas que partem de nós source nunca
        ficam desatualizadas.
        """
        instruction = self._payload.instruction_text
        is_recipe = isinstance(self._payload, Recipe)

        # `recipe` marca apenas as arestas dependency→recipe
        frames = []
        if self.packages:
            frames.append(new_edge(
                self.packages, [instruction],
                source=True, recipe=False, package=True, segment_id=self._id,
            ))
        frames.append(new_edge(
            self.dependencies, [instruction],
            source=True, recipe=is_recipe, package=False, segment_id=self._id,
        ))
        frames.append(new_edge(
            [instruction], self.targets,
            source=False, recipe=False, package=False, segment_id=self._id,
        ))
        edges = concat_frames(frames, EDGE_COLUMNS)

        dependencies = self._payload.effective_dependencies(self.dependencies)
        if any(not os.path.exists(d) for d in dependencies):
            edges["outdated"] = True
        else:
            edges["outdated"] = out_of_date(self.targets, dependencies, self.packages)
        edges.loc[edges["source"], "outdated"] = False

        return edges

    @property
    def nodes(self) -> pd.DataFrame:
        """Nó da instrução, dos targets, das dependencies e dos packages."""
        return concat_frames(
            [
                new_node([self._payload.instruction_text], source=False, instruction=True, package=False),
                new_node(self.targets, source=False, instruction=False, package=False),
                new_node(self.dependencies, source=True, instruction=False, package=False),
                new_node(self.packages, source=True, instruction=False, package=True),
            ],
            NODE_COLUMNS,
        )

    # -----------------------------
    # Resumo
    # -----------------------------
    @property
    def text_summary(self) -> List[str]:
        def bullet(*parts: Any) -> str:
            return "* " + "".join(str(p) for p in parts)

        def list_quote(values: Iterable[str]) -> str:
            return "'" + "', '".join(values) + "'"

        title = self.label or self._payload.title or "Recipe"
        out = [f"## {title}", ""]

        if self.note:
            out += [self.note, ""]

        out.append(bullet(self._payload.instruction_bullet))
        out.append(bullet("Targets: ", list_quote(self.targets)))

        if self.dependencies:
            out.append(bullet("File dependencies: ", list_quote(self.dependencies)))

        if self.packages:
            out.append(bullet("Package dependencies: ", list_quote(self.packages)))

        out.append(bullet("Executed: ", self.executed))

        if self.executed:
            out.append(bullet("Execution time: ", format_duration(self.execution_time)))
            out.append(bullet("Result: ", self._payload.result_count(self.result), " object(s)"))

        out.append(bullet("Environment: ", self.context.name))
        return out

    def __str__(self) -> str:
        return "\n".join(["# makepipe segment", "", *self.text_summary])

    def __repr__(self) -> str:
        return (
            f"Segment(id={self._id}, kind={self.kind!r}, "
            f"targets={self.targets!r}, executed={self.executed})"
        )

    def print_summary(self, file: Optional[TextIO] = None) -> None:
        print(str(self), file=file)

    def to_dict(self) -> Dict[str, Any]:
        """Descrição serializável (JSON) do Segment, sem o `result`."""
        return {
            "id": self._id,
            "kind": self.kind,
            "instruction": self._payload.instruction_text,
            "targets": list(self.targets),
            "dependencies": list(self.dependencies),
            "packages": list(self.packages),
            "force": self.force,
            "executed": self.executed,
            "execution_time": (
                None if self.execution_time is None else self.execution_time.total_seconds()
            ),
            "result_count": self._payload.result_count(self.result),
            "label": self.label,
            "note": self.note,
            "context": self.context.name,
        }
