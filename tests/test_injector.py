"""
Test suite for the injection engine and noise code generation.

Tests cover:
- Statement boundary search and insertion offsets
- Several points on one line
- Header additions (import and shared random field)
- Line count preservation
- Generated Java snippets
"""

import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.classifier import find_points
from core.codegen import MISSING_TYPE_MARKER, RANDOM_FIELD, NoiseMaker
from core.injector import (Splice, add_header, apply_splices, enum_constants_end,
                           insertion_offset,
                           instrument_line, instrument_unit, locate_trigger,
                           statement_start)
from core.points import ConstructKind, Noise, NoiseKind, Point, SourceUnit


YIELD = Noise(NoiseKind.YIELD, 50)


def point(sequence, trigger, line=1, noise=YIELD, kind=ConstructKind.SEMAPHORE):
    return Point(line, sequence, kind, trigger, noise)


class TestNoiseMaker:
    """Tests for generated Java text."""

    @pytest.fixture
    def maker(self):
        return NoiseMaker()

    def test_yield(self, maker):
        assert maker.render_noise(Noise(NoiseKind.YIELD, 30)) == \
            f'if ({RANDOM_FIELD}.nextInt(100) < 30) {{ Thread.yield(); }} '

    def test_sleep_with_range(self, maker):
        text = maker.render_noise(Noise(NoiseKind.SLEEP, 60, 100, 400))
        assert text.startswith(f'if ({RANDOM_FIELD}.nextInt(100) < 60) {{ try {{ ')
        assert f'Thread.sleep(100 + {RANDOM_FIELD}.nextInt(300));' in text
        assert 'catch (InterruptedException e)' in text
        assert text.endswith(' ')

    def test_sleep_with_fixed_delay(self, maker):
        text = maker.render_noise(Noise(NoiseKind.SLEEP, 60, 250, 250))
        assert 'Thread.sleep(250);' in text
        assert 'nextInt(0)' not in text

    def test_snippets_are_single_line(self, maker):
        for text in (maker.render_noise(Noise(NoiseKind.SLEEP)),
                     maker.render_noise(YIELD),
                     maker.render_import_statement(),
                     maker.render_shared_random_field()):
            assert '\n' not in text

    def test_header_statements(self, maker):
        assert maker.render_import_statement() == 'import java.util.Random;'
        assert maker.render_shared_random_field() == \
            f'static final Random {RANDOM_FIELD} = new Random();'

    def test_custom_field_name(self):
        assert 'rnd.nextInt(100)' in NoiseMaker('rnd').render_noise(YIELD)

    def test_for_owner_qualifies_references(self, maker):
        owned = maker.for_owner('Worker')
        text = owned.render_noise(Noise(NoiseKind.SLEEP, 60, 100, 400))

        assert text.startswith(f'if (Worker.{RANDOM_FIELD}.nextInt(100) < 60)')
        assert f'Thread.sleep(100 + Worker.{RANDOM_FIELD}.nextInt(300));' in text
        # The declaration itself stays unqualified
        assert owned.render_shared_random_field() == maker.render_shared_random_field()


class TestOffsets:
    """Tests for locating where noise goes."""

    def test_statement_start_after_semicolon(self):
        line = 'foo(); obj.acquire(); bar();'
        assert statement_start(line, line.index('.acquire(')) == 6

    def test_statement_start_at_line_start(self):
        assert statement_start('    sem.acquire();', 7) == 0

    def test_statement_start_after_brace(self):
        line = 'if (x) { sem.acquire(); }'
        assert statement_start(line, line.index('.acquire(')) == 8

    def test_insertion_offset_for_point(self):
        line = 'foo(); obj.acquire(); bar();'
        assert insertion_offset(line, point(0, '.acquire(')) == 6

    def test_locate_by_sequence(self):
        line = 'a.lock(); b.lock();'
        assert locate_trigger(line, point(1, '.lock(')) == 11

    def test_locate_falls_back_to_trigger_text(self):
        # Sequence 1 in the full scan is '.acquire(', so the second
        # '.release(' is found by searching the trigger text directly
        line = 'sem.release(); other.acquire(); sem.release();'
        assert locate_trigger(line, point(1, '.release(')) == 35

    def test_missing_trigger(self):
        assert locate_trigger('int x = 1;', point(0, '.acquire(')) is None


class TestInstrumentLine:
    """Tests for splicing noise into one line."""

    def test_single_point(self):
        maker = NoiseMaker()
        line = 'foo(); obj.acquire(); bar();'
        result = instrument_line(line, [point(0, '.acquire(')], maker)
        assert result == 'foo();' + maker.render_noise(YIELD) + ' obj.acquire(); bar();'

    def test_several_points_keep_their_statements(self):
        maker = NoiseMaker()
        line = 'sem.acquire(); lock.lock();'
        first = point(0, '.acquire(')
        second = point(1, '.lock(', noise=Noise(NoiseKind.YIELD, 10))

        result = instrument_line(line, [first, second], maker)

        assert result == (maker.render_noise(first.noise) + 'sem.acquire();' +
                          maker.render_noise(second.noise) + ' lock.lock();')

    def test_points_in_same_statement_keep_order(self):
        maker = NoiseMaker()
        noises = [Noise(NoiseKind.YIELD, 1), Noise(NoiseKind.YIELD, 2)]
        # Both calls in one statement share the insertion offset
        line = 'x = a.lock() + b.lock();'
        points = [point(0, '.lock(', noise=noises[0]), point(1, '.lock(', noise=noises[1])]

        result = instrument_line(line, points, maker)

        assert result == maker.render_noise(noises[0]) + maker.render_noise(noises[1]) + line

    def test_unlocatable_point_skipped(self):
        line = 'int x = 1;'
        assert instrument_line(line, [point(0, '.acquire(')], NoiseMaker()) == line

    def test_apply_splices_on_original_offsets(self):
        assert apply_splices('abc', [Splice(1, 'X'), Splice(2, 'Y')]) == 'aXbYc'


class TestHeader:
    """Tests for the import and shared field."""

    @pytest.fixture
    def maker(self):
        return NoiseMaker()

    def test_import_after_package_and_field_after_brace(self, maker):
        text = 'package demo;\n\npublic class A {\n}\n'
        result = add_header(text, maker)
        lines = result.split('\n')

        assert lines[0] == 'package demo; import java.util.Random;'
        assert lines[2] == 'public class A { ' + maker.render_shared_random_field()
        assert len(lines) == len(text.split('\n'))

    def test_import_after_first_import_without_package(self, maker):
        text = 'import java.util.List;\nclass A {\n}\n'
        result = add_header(text, maker)
        assert result.split('\n')[0] == 'import java.util.List; import java.util.Random;'

    def test_import_at_top_without_package_or_imports(self, maker):
        result = add_header('class A {\n}\n', maker)
        assert result.startswith('import java.util.Random; class A {')

    def test_marker_without_type_declaration(self, maker):
        result = add_header('package demo;\nint x;\n', maker)
        assert result.split('\n')[0] == \
            'package demo; import java.util.Random; ' + MISSING_TYPE_MARKER
        assert RANDOM_FIELD + ' = new Random()' not in result

    def test_interface_gets_field(self, maker):
        result = add_header('public interface Shared {\n}\n', maker)
        assert 'public interface Shared { static final Random' in result

    def test_annotated_class_gets_field(self, maker):
        text = 'package demo;\n@SuppressWarnings("all") public class A {\n}\n'
        lines = add_header(text, maker).split('\n')

        assert lines[0] == 'package demo; import java.util.Random;'
        assert lines[1] == '@SuppressWarnings("all") public class A { ' + maker.render_shared_random_field()

    @pytest.mark.parametrize("declaration", [
        '@Deprecated\nclass A {',
        '@javax.annotation.Generated(value = "x") final class A {',
        'public sealed class A permits B {',
        'non-sealed class A extends Base {',
        'public record A(int x) {',
    ])
    def test_declaration_forms_recognised(self, maker, declaration):
        result = add_header(declaration + '\n}\n', maker)
        assert MISSING_TYPE_MARKER not in result
        assert '{ ' + maker.render_shared_random_field() in result

    def test_enum_field_after_constants(self, maker):
        text = 'enum Mode {\n    A, B;\n    void f() { }\n}\n'
        lines = add_header(text, maker).split('\n')

        assert lines[0] == 'import java.util.Random; enum Mode {'
        assert lines[1] == '    A, B; ' + maker.render_shared_random_field()

    def test_enum_constant_bodies_skipped(self, maker):
        text = 'enum Op {\n    PLUS("+") { int f() { return 1; } }, MINUS("-;");\n}\n'
        result = add_header(text, maker)
        assert 'MINUS("-;"); ' + maker.render_shared_random_field() in result

    def test_enum_without_terminator(self, maker):
        text = 'enum Mode {\n    A, B // last ; one\n}\n'
        lines = add_header(text, maker).split('\n')
        assert lines[2] == '; ' + maker.render_shared_random_field() + ' }'

    def test_enum_constants_end(self):
        text = 'enum E { A(1), B(2); }'
        assert enum_constants_end(text, text.index('{') + 1) == (text.index(';') + 1, False)
        text = 'enum E { A, B }'
        assert enum_constants_end(text, text.index('{') + 1) == (text.index('}'), True)


class TestInstrumentUnit:
    """Tests for whole-file injection."""

    SOURCE = ("package demo;\n"
              "\n"
              "public class A {\n"
              "    void run() throws Exception {\n"
              "        /* @PreemptionPoint (sequence = 0, type = \"yield\", probability = 25) */\n"
              "        sem.acquire();\n"
              "        lock.lock();\n"
              "    }\n"
              "}\n")

    @pytest.fixture
    def unit(self):
        return find_points(SourceUnit.from_text(Path('A.java'), self.SOURCE))

    def test_line_count_preserved(self, unit):
        result = instrument_unit(unit, unit.instrumentation_points)
        assert result.count('\n') == self.SOURCE.count('\n')

    def test_only_selected_points_get_noise(self, unit):
        lines = instrument_unit(unit, unit.instrumentation_points).split('\n')
        assert 'Thread.yield()' in lines[5]
        assert lines[6] == '        lock.lock();'

    def test_no_points_leaves_text_untouched(self, unit):
        assert instrument_unit(unit, []) == self.SOURCE

    def test_interest_points_ignored(self, unit):
        assert instrument_unit(unit, unit.interest_points[1:2]) == self.SOURCE

    def test_unit_lines_not_modified(self, unit):
        before = list(unit.lines)
        instrument_unit(unit, unit.instrumentation_points)
        assert unit.lines == before

    def test_noise_qualifies_field_with_first_type(self, unit):
        lines = instrument_unit(unit, unit.instrumentation_points).split('\n')
        assert 'if (A._contenderRandom.nextInt(100) < 25)' in lines[5]

    def test_second_top_level_type_uses_qualified_field(self):
        text = ("class A {\n"
                "}\n"
                "class B {\n"
                "    /* @PreemptionPoint (type = \"yield\", probability = 50) */\n"
                "    void f() { lock.lock(); }\n"
                "}\n")
        unit = find_points(SourceUnit.from_text(Path('A.java'), text))
        lines = instrument_unit(unit, unit.instrumentation_points).split('\n')

        assert 'class A { static final Random _contenderRandom' in lines[0]
        assert 'A._contenderRandom.nextInt(100) < 50' in lines[4]
        assert '_contenderRandom = new Random()' not in '\n'.join(lines[1:])

    def test_crlf_preserved(self):
        text = self.SOURCE.replace('\n', '\r\n')
        unit = find_points(SourceUnit.from_text(Path('A.java'), text))
        result = instrument_unit(unit, unit.instrumentation_points)
        assert result.count('\r\n') == text.count('\r\n')
        assert '\n' not in result.replace('\r\n', '')
