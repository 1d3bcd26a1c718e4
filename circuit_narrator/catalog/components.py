"""
Static catalog of the classroom electronics components.

Each entry carries the canonical classifier phrase, curated alias phrases,
the on-screen description and the text that is read aloud.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from ..errors import InvalidInput, error_handler
from ..models import Component, ComponentCategory


logger = logging.getLogger(__name__)


ELECTRONICS_COMPONENTS = (
    Component(
        id='resistor',
        name='Resistor',
        category=ComponentCategory.PASSIVE,
        clip_label='a photo of a resistor with colored bands',
        aliases=('a photo of an axial resistor',),
        description=(
            'A resistor limits the flow of electrical current in a circuit. Think of it like a narrow '
            'section in a water pipe that slows things down. Resistors protect sensitive components '
            'from receiving too much current.'
        ),
        voice_description=(
            'This is a resistor. It limits the flow of electrical current, protecting other components '
            'in your circuit. Resistors are one of the most common components in electronics. The colored '
            'bands on a resistor tell you its resistance value in ohms.'
        ),
        specs=(
            ('Resistance', '220 Ω (typical for LED circuits)'),
            ('Power Rating', '0.25 W'),
            ('Tolerance', '± 5%'),
            ('Type', 'Carbon Film'),
        ),
        circuit_example=(
            'Connect a 220Ω resistor in series with an LED and a 5V power source. The resistor limits '
            'current to about 15mA, preventing the LED from burning out.'
        ),
    ),
    Component(
        id='led',
        name='LED',
        category=ComponentCategory.OUTPUT,
        has_active_state=True,
        clip_label='a photo of a light emitting diode LED',
        aliases=('a photo of a red LED', 'a photo of a through-hole LED'),
        description=(
            'An LED (Light Emitting Diode) produces light when electricity flows through it. Unlike '
            'regular bulbs, LEDs are very efficient and last a long time. They only work in one direction: '
            'the longer leg (anode) connects to positive.'
        ),
        voice_description=(
            'This is an LED, or Light Emitting Diode. It produces light when current flows through it. '
            'LEDs are very energy efficient and are found in almost every electronic device. Remember, the '
            'longer leg is positive and the shorter leg is negative. Always use a resistor with an LED to '
            'prevent it from burning out.'
        ),
        specs=(
            ('Forward Voltage', '2.0 V (red)'),
            ('Max Current', '20 mA'),
            ('Color', 'Red (625 nm)'),
            ('Type', '5mm Through-Hole'),
        ),
        circuit_example=(
            'Connect the longer leg (anode) through a 220Ω resistor to the Arduino digital pin 13. Connect '
            'the shorter leg (cathode) to GND. Use digitalWrite(13, HIGH) to turn it on.'
        ),
    ),
    Component(
        id='button',
        name='Push Button',
        category=ComponentCategory.INPUT,
        has_active_state=True,
        clip_label='a photo of a tactile push button switch',
        aliases=('a photo of a push button', 'a photo of a tactile switch'),
        description=(
            'A push button is a simple switch that connects two points in a circuit when pressed. When you '
            'release it, the connection breaks. Buttons are used to give input to a circuit, like telling '
            'your Arduino to do something.'
        ),
        voice_description=(
            'This is a push button, also called a tactile switch. When you press it, it connects the '
            'circuit and allows current to flow. When you release it, the connection breaks. Buttons are '
            'the simplest way to provide input to your Arduino projects.'
        ),
        specs=(
            ('Type', 'Momentary Tactile'),
            ('Rating', '12V / 50mA'),
            ('Bounce Time', '< 5 ms'),
            ('Lifespan', '100,000 presses'),
        ),
        circuit_example=(
            'Connect one leg of the button to Arduino pin 2 and the other to GND. Enable the internal '
            'pull-up resistor with pinMode(2, INPUT_PULLUP). Read the button state with digitalRead(2).'
        ),
    ),
    Component(
        id='speaker',
        name='Piezo Speaker',
        category=ComponentCategory.OUTPUT,
        has_active_state=True,
        clip_label='a photo of a piezo buzzer speaker',
        aliases=('a photo of a piezo buzzer',),
        description=(
            'A piezo speaker (buzzer) makes sound by vibrating a small disc very quickly. By changing how '
            'fast it vibrates (the frequency), you can produce different musical notes. It is great for '
            'adding audio feedback to projects.'
        ),
        voice_description=(
            'This is a piezo speaker, sometimes called a buzzer. It produces sound by vibrating a small '
            'ceramic disc at different frequencies. You can play simple melodies or use it for alarms and '
            'notifications. Connect it to a digital pin on your Arduino and use the tone function to play '
            'notes.'
        ),
        specs=(
            ('Voltage', '3 – 30 V'),
            ('Frequency Range', '2 – 4 kHz'),
            ('Sound Level', '~ 85 dB'),
            ('Type', 'Passive Piezo'),
        ),
        circuit_example=(
            'Connect the positive pin of the speaker to Arduino pin 8 and the negative pin to GND. Use '
            'tone(8, 440, 500) to play an A4 note (440 Hz) for half a second.'
        ),
    ),
    Component(
        id='capacitor',
        name='Capacitor',
        category=ComponentCategory.PASSIVE,
        clip_label='a photo of an electrolytic capacitor',
        aliases=('a photo of a radial capacitor', 'a photo of an electrolytic capacitor'),
        description=(
            'A capacitor stores electrical energy temporarily, like a tiny rechargeable battery. It charges '
            'up when current flows in and releases that energy when needed. Capacitors smooth out voltage '
            'fluctuations and are essential in almost every circuit.'
        ),
        voice_description=(
            'This is a capacitor. It stores electrical energy temporarily and releases it when needed. '
            'Think of it like a small rechargeable battery. Capacitors are used to smooth out power supply '
            'fluctuations and filter signals. The electrolytic type has a polarity. The longer leg is '
            'positive.'
        ),
        specs=(
            ('Capacitance', '100 μF'),
            ('Voltage Rating', '25 V'),
            ('Type', 'Electrolytic'),
            ('Tolerance', '± 20%'),
        ),
        circuit_example=(
            'Place a 100μF capacitor across the power rails of your breadboard (positive to 5V, negative '
            'to GND). This stabilizes the voltage and protects sensitive components from power spikes.'
        ),
    ),
    Component(
        id='potentiometer',
        name='Potentiometer',
        category=ComponentCategory.INPUT,
        clip_label='a photo of a potentiometer rotary knob',
        aliases=('a photo of a rotary potentiometer',),
        description=(
            'A potentiometer is a variable resistor with a knob you can turn. Rotating the knob changes the '
            'resistance, which lets you control things like volume, brightness, or speed. It has three '
            'pins: two outer pins and one middle wiper pin.'
        ),
        voice_description=(
            'This is a potentiometer, often called a pot. It is a variable resistor that you control by '
            'turning a knob. As you rotate it, the resistance changes smoothly, which lets you adjust things '
            'like volume or LED brightness. It has three pins: connect the outer two to power and ground, '
            'and read the middle pin with an analog input.'
        ),
        specs=(
            ('Resistance Range', '0 – 10 kΩ'),
            ('Type', 'Rotary (Linear Taper)'),
            ('Rotation', '270°'),
            ('Power Rating', '0.5 W'),
        ),
        circuit_example=(
            'Connect the left pin to 5V, the right pin to GND, and the middle pin to Arduino analog pin A0. '
            'Use analogRead(A0) to read a value from 0 to 1023 as you turn the knob.'
        ),
    ),
    Component(
        id='diode',
        name='Diode',
        category=ComponentCategory.PASSIVE,
        clip_label='a photo of a diode electronic component',
        aliases=('a photo of a rectifier diode',),
        description=(
            'A diode is like a one-way valve for electricity: it only allows current to flow in one '
            'direction. The stripe on the body marks the cathode (negative) end. Diodes protect circuits '
            'from reverse voltage and are used in power supplies.'
        ),
        voice_description=(
            'This is a diode. It acts as a one-way valve, allowing electrical current to flow in only one '
            'direction. The stripe or band on the diode marks the cathode, which is the negative end. '
            'Diodes are essential for protecting circuits from reverse polarity and are a key building '
            'block in power supply circuits.'
        ),
        specs=(
            ('Type', '1N4007 Rectifier'),
            ('Max Voltage', '1000 V (reverse)'),
            ('Max Current', '1 A (forward)'),
            ('Forward Drop', '0.7 V'),
        ),
        circuit_example=(
            'Place a 1N4007 diode in series with a DC motor, with the stripe facing the positive supply. '
            'This protects your Arduino from voltage spikes when the motor turns off.'
        ),
    ),
    Component(
        id='transistor',
        name='Transistor',
        category=ComponentCategory.ACTIVE,
        clip_label='a photo of a transistor electronic component',
        aliases=('a photo of a TO-92 transistor',),
        description=(
            'A transistor is like an electronic switch or amplifier. A small current at the base pin '
            'controls a much larger current flowing between the collector and emitter. Transistors are the '
            'building blocks of all modern computers and electronics.'
        ),
        voice_description=(
            'This is a transistor. It is one of the most important inventions in electronics. A transistor '
            'acts as an electronic switch or signal amplifier. By applying a small current to the base pin, '
            'you can control a much larger current flowing between the collector and emitter pins. This is '
            'how your Arduino controls motors and other high-power devices.'
        ),
        specs=(
            ('Type', 'NPN (2N2222)'),
            ('Max Collector Current', '800 mA'),
            ('Max Voltage (CE)', '40 V'),
            ('Gain (hFE)', '100 – 300'),
        ),
        circuit_example=(
            'Connect the emitter to GND, the collector to one motor terminal (other terminal to 5V), and '
            'the base through a 1kΩ resistor to Arduino pin 9. Use digitalWrite(9, HIGH) to turn the motor '
            'on.'
        ),
    ),
    Component(
        id='servo',
        name='Servo Motor',
        category=ComponentCategory.OUTPUT,
        has_active_state=True,
        clip_label='a photo of a servo motor',
        aliases=('a photo of an SG90 servo motor',),
        description=(
            'A servo motor is a small motor that can rotate to a specific angle and hold that position. '
            'Unlike regular motors that spin continuously, servos are precise: you tell them exactly where '
            'to point. They are used in robotics, RC cars, and automation.'
        ),
        voice_description=(
            'This is a servo motor. Unlike regular motors, a servo can rotate to a precise angle and hold '
            'that position. You control it by sending a pulse-width modulated signal. Servos are commonly '
            'used in robotics for arms, legs, and steering. Most hobby servos rotate from 0 to 180 degrees.'
        ),
        specs=(
            ('Type', 'SG90 Micro Servo'),
            ('Rotation Range', '0° – 180°'),
            ('Torque', '1.8 kg·cm'),
            ('Voltage', '4.8 – 6.0 V'),
        ),
        circuit_example=(
            'Connect the red wire to 5V, the brown wire to GND, and the orange signal wire to Arduino pin 9. '
            'Use the Servo library: myServo.attach(9) then myServo.write(90) to move to 90 degrees.'
        ),
    ),
    Component(
        id='dc-motor',
        name='DC Motor',
        category=ComponentCategory.OUTPUT,
        has_active_state=True,
        clip_label='a photo of a small DC electric motor',
        aliases=('a photo of a brushed DC motor',),
        description=(
            'A DC motor converts electrical energy into continuous rotation. When you apply voltage, the '
            'shaft spins. Reverse the voltage and it spins the other way. DC motors are found in fans, toys, '
            'and electric vehicles.'
        ),
        voice_description=(
            'This is a DC motor. It converts electrical energy into rotational motion. When you apply '
            'voltage across its two terminals, the shaft spins continuously. Reverse the polarity and it '
            'spins the other direction. DC motors draw more current than your Arduino can provide directly, '
            'so you need a transistor or motor driver to control them.'
        ),
        specs=(
            ('Voltage', '3 – 6 V'),
            ('No-Load Speed', '~15,000 RPM'),
            ('Current (no load)', '70 mA'),
            ('Type', 'Brushed DC'),
        ),
        circuit_example=(
            'Use an NPN transistor as a switch: connect the motor between 5V and the collector, emitter to '
            'GND, and base through a 1kΩ resistor to Arduino pin 9. Add a flyback diode across the motor.'
        ),
    ),
    Component(
        id='photoresistor',
        name='Photoresistor (LDR)',
        category=ComponentCategory.INPUT,
        clip_label='a photo of a photoresistor light dependent resistor',
        aliases=('a photo of an LDR sensor',),
        description=(
            'A photoresistor (Light Dependent Resistor) changes its resistance based on how much light hits '
            'it. In bright light, resistance drops low; in darkness, it rises high. It is a simple and fun '
            'way to make your project respond to light.'
        ),
        voice_description=(
            'This is a photoresistor, also called an LDR or Light Dependent Resistor. Its resistance changes '
            'depending on how much light shines on it. In bright light, the resistance is low, around a few '
            'hundred ohms. In the dark, it rises to over 10,000 ohms. You can use it to make automatic night '
            'lights or light-following robots.'
        ),
        specs=(
            ('Light Resistance', '~200 Ω'),
            ('Dark Resistance', '~10 kΩ'),
            ('Peak Wavelength', '540 nm (green)'),
            ('Type', 'CdS Photocell'),
        ),
        circuit_example=(
            'Create a voltage divider: connect one leg of the LDR to 5V and the other to both a 10kΩ '
            'resistor (to GND) and Arduino analog pin A0. Use analogRead(A0) to measure light level.'
        ),
    ),
    Component(
        id='temp-sensor',
        name='Temperature Sensor',
        category=ComponentCategory.INPUT,
        clip_label='a photo of a temperature sensor electronic component',
        aliases=('a photo of a TMP36 temperature sensor',),
        description=(
            'A temperature sensor measures how hot or cold it is and outputs a voltage proportional to the '
            'temperature. The TMP36 is popular with Arduino because it is simple, with no extra components '
            'needed. It reads from −40°C to +125°C.'
        ),
        voice_description=(
            'This is a temperature sensor, specifically a TMP36. It measures the ambient temperature and '
            'outputs a voltage that you can read with your Arduino. For every degree Celsius, the output '
            'changes by 10 millivolts. It is easy to use. Just power it and read the analog voltage. No '
            'calibration needed.'
        ),
        specs=(
            ('Type', 'TMP36 Analog'),
            ('Range', '−40°C to +125°C'),
            ('Accuracy', '± 1°C'),
            ('Output Scale', '10 mV/°C'),
        ),
        circuit_example=(
            'Connect the left pin to 5V, the right pin to GND, and the middle pin to Arduino analog pin A0. '
            'Convert the reading: tempC = (analogRead(A0) * 5.0 / 1024.0 - 0.5) * 100.'
        ),
    ),
    Component(
        id='ultrasonic',
        name='Ultrasonic Sensor',
        category=ComponentCategory.INPUT,
        clip_label='a photo of an ultrasonic distance sensor HC-SR04',
        aliases=('a photo of an HC-SR04 ultrasonic sensor',),
        description=(
            'An ultrasonic sensor measures distance by sending out a sound pulse and timing how long it '
            'takes to bounce back, just like a bat. The HC-SR04 can measure from 2 cm to 4 meters. Great '
            'for obstacle detection and robotics.'
        ),
        voice_description=(
            'This is an ultrasonic distance sensor, specifically an HC-SR04. It works like sonar. It sends '
            'out an ultrasonic sound pulse and measures how long it takes for the echo to return. From that '
            'time, you can calculate the distance to an object. It can measure distances from about 2 '
            'centimeters to 4 meters.'
        ),
        specs=(
            ('Type', 'HC-SR04'),
            ('Range', '2 cm – 400 cm'),
            ('Accuracy', '± 3 mm'),
            ('Trigger Pulse', '10 μs'),
        ),
        circuit_example=(
            'Connect VCC to 5V, GND to GND, Trig to pin 9, Echo to pin 10. Send a 10μs HIGH pulse on Trig, '
            'then use pulseIn(10, HIGH) to measure the echo time. Distance = time × 0.034 / 2 cm.'
        ),
    ),
    Component(
        id='lcd',
        name='LCD Display',
        category=ComponentCategory.OUTPUT,
        clip_label='a photo of an LCD display screen module',
        aliases=('a photo of a 16x2 LCD module', 'a photo of an LCD1602 display'),
        description=(
            'An LCD display shows text and numbers on a small screen. The 16×2 LCD has two rows of 16 '
            'characters each. It is the easiest way to show sensor readings, messages, or menus without '
            'needing a computer screen.'
        ),
        voice_description=(
            'This is an LCD display, a 16 by 2 character screen. It can display two rows of 16 characters '
            'each. LCDs are the simplest way to show text output from your Arduino, like sensor readings or '
            'status messages. They use the Liquid Crystal library and typically need 6 or more pins, though '
            'an I2C adapter can reduce that to just two.'
        ),
        specs=(
            ('Type', '16×2 Character LCD'),
            ('Controller', 'HD44780'),
            ('Backlight', 'LED (blue or green)'),
            ('Voltage', '5 V'),
        ),
        circuit_example=(
            'Wire RS to pin 12, Enable to pin 11, D4-D7 to pins 5-2. Include a 10kΩ potentiometer on the '
            'contrast pin (V0). Use LiquidCrystal library: lcd.begin(16, 2) then lcd.print("Hello!").'
        ),
    ),
    Component(
        id='relay',
        name='Relay',
        category=ComponentCategory.ACTIVE,
        has_active_state=True,
        clip_label='a photo of a relay module',
        aliases=('a photo of a single-channel relay module',),
        description=(
            'A relay is an electrically-controlled switch. A small signal from your Arduino activates an '
            'electromagnet inside, which flips a mechanical switch to control high-power devices like lamps, '
            'fans, or appliances safely.'
        ),
        voice_description=(
            'This is a relay module. A relay is an electrically-controlled switch that lets your low-power '
            'Arduino safely control high-power devices like lamps, fans, or appliances. When you send a '
            'signal, an electromagnet inside flips a mechanical switch. You can hear a clicking sound when '
            'it activates. Always be careful with relays connected to mains electricity.'
        ),
        specs=(
            ('Control Voltage', '5 V DC'),
            ('Switching Capacity', '10 A @ 250 V AC'),
            ('Trigger Current', '~ 70 mA'),
            ('Type', 'SPDT (Single Pole Double Throw)'),
        ),
        circuit_example=(
            'Connect the relay VCC to 5V, GND to GND, and IN to Arduino pin 7. Use digitalWrite(7, HIGH) to '
            'activate the relay. The COM and NO terminals form a switch for your high-power circuit.'
        ),
    ),
    Component(
        id='rgb-led',
        name='RGB LED',
        category=ComponentCategory.OUTPUT,
        has_active_state=True,
        clip_label='a photo of an RGB LED light emitting diode',
        aliases=('a photo of a 4-pin RGB LED',),
        description=(
            'An RGB LED is actually three tiny LEDs (red, green, blue) in one package. By mixing different '
            'brightness levels of each color, you can create virtually any color. It has four legs: one '
            'common pin and one for each color.'
        ),
        voice_description=(
            'This is an RGB LED. It contains three tiny LEDs in one package: red, green, and blue. By '
            'controlling the brightness of each color using PWM, you can mix them to create any color you '
            'want. Common cathode types share a ground pin, while common anode types share a positive pin. '
            'Use analogWrite to set each color channel from 0 to 255.'
        ),
        specs=(
            ('Type', '5mm Common Cathode'),
            ('Red Forward Voltage', '2.0 V'),
            ('Green Forward Voltage', '3.2 V'),
            ('Blue Forward Voltage', '3.2 V'),
        ),
        circuit_example=(
            'Connect the longest leg (cathode) to GND. Connect R, G, B legs through 220Ω resistors to '
            'Arduino pins 9, 10, 11. Use analogWrite(9, 255) for red, analogWrite(10, 255) for green, etc.'
        ),
    ),
)


class ComponentCatalog:
    """
    Ordered, read-only lookup over catalog components.

    Insertion order is preserved; it is the tie-break order used when
    ranking classification results.
    """

    def __init__(self, components: Iterable[Component] = ELECTRONICS_COMPONENTS):
        self._components: List[Component] = []
        self._by_id: Dict[str, Component] = {}

        for component in components:
            if component.id in self._by_id:
                raise ValueError(f"Duplicate component id in catalog: {component.id}")
            self._components.append(component)
            self._by_id[component.id] = component

        logger.debug(f"Loaded component catalog with {len(self._components)} entries")

    def __iter__(self) -> Iterator[Component]:
        return iter(self._components)

    def __len__(self) -> int:
        return len(self._components)

    def __contains__(self, component_id: str) -> bool:
        return component_id in self._by_id

    @property
    def ids(self) -> List[str]:
        return [c.id for c in self._components]

    def find(self, component_id: str) -> Optional[Component]:
        """Return the component with this id, or None."""
        return self._by_id.get(component_id)

    def get(self, component_id: str) -> Component:
        """
        Return the component with this id.

        Raises:
            InvalidInput: If the id is not in the catalog
        """
        component = self._by_id.get(component_id)
        if component is None:
            raise InvalidInput(error_handler.unknown_component(component_id, self.ids))
        return component

    def by_category(self, category: ComponentCategory) -> List[Component]:
        """Return the components of one category, in catalog order."""
        return [c for c in self._components if c.category == category]
